from urllib.parse import parse_qs, urlsplit

CLIENT_ID = "alexa-skill"
CLIENT_SECRET = "alexa-secret"
REDIRECT_URI = "https://example.com/alexa/link"


def _authorize_params(**overrides) -> dict:
    params = {"response_type": "code", "client_id": CLIENT_ID, "redirect_uri": REDIRECT_URI, "state": "s1"}
    params.update(overrides)
    return params


def test_authorize_requires_logged_in_user(client) -> None:
    response = client.get("/oauth/authorize", params=_authorize_params(), follow_redirects=False)

    assert response.status_code == 401


def test_authorize_then_token_exchange(client, user_u1, auth_headers) -> None:
    redirect = client.get(
        "/oauth/authorize", params=_authorize_params(), headers=auth_headers("u1"), follow_redirects=False
    )

    assert redirect.status_code == 302
    query = parse_qs(urlsplit(redirect.headers["location"]).query)
    assert query["state"] == ["s1"]

    token = client.post(
        "/oauth/token",
        data={
            "grant_type": "authorization_code",
            "code": query["code"][0],
            "client_id": CLIENT_ID,
            "client_secret": CLIENT_SECRET,
            "redirect_uri": REDIRECT_URI,
        },
    )

    assert token.status_code == 200
    assert token.json()["token_type"] == "Bearer"


def test_authorize_with_unknown_client_is_400(client, user_u1, auth_headers) -> None:
    response = client.get(
        "/oauth/authorize",
        params=_authorize_params(client_id="unknown"),
        headers=auth_headers("u1"),
        follow_redirects=False,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_client"


def test_token_with_unsupported_grant_is_400(client) -> None:
    response = client.post(
        "/oauth/token",
        data={"grant_type": "password", "client_id": CLIENT_ID, "client_secret": CLIENT_SECRET},
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": "unsupported_grant_type",
        "error_description": "Unsupported grant_type: password",
    }

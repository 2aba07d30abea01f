"""Test doubles shared across test modules."""

import json

import httpx

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.test/v1"
TEST_UID = "user-1"
TEST_PHONE = "+919876543210"


class FakeIdentityToolkit:
    """
    Stands in for the Identity Toolkit REST API behind an httpx.MockTransport.

    Set ``errors[method]`` to an Identity Toolkit error string (e.g.
    ``"INVALID_PHONE_NUMBER"``) to make that method fail.
    """

    def __init__(self):
        self.requests: list[tuple[str, dict]] = []
        self.errors: dict[str, str] = {}
        self.session_info = "session-info-1"
        self.code = "123456"
        self.uid = "firebase-uid-1"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit(":", 1)[-1]
        body = json.loads(request.content)
        self.requests.append((method, body))

        if method in self.errors:
            return httpx.Response(400, json={"error": {"code": 400, "message": self.errors[method]}})

        if method == "sendVerificationCode":
            return httpx.Response(200, json={"sessionInfo": self.session_info})

        if method == "signInWithPhoneNumber":
            if body.get("code") != self.code:
                return httpx.Response(400, json={"error": {"code": 400, "message": "INVALID_CODE"}})
            return httpx.Response(
                200,
                json={
                    "localId": self.uid,
                    "phoneNumber": TEST_PHONE,
                    "idToken": "id-token",
                    "refreshToken": "refresh-token",
                    "expiresIn": "3600",
                    "isNewUser": True,
                },
            )

        return httpx.Response(404, json={"error": {"code": 404, "message": "NOT_FOUND"}})

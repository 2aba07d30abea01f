"""Tests for the profile endpoints."""

from httpx import AsyncClient

PROFILE_FORM = {
    "fullName": "Asha Verma",
    "gender": "Female",
    "dob": "2000-05-17",
    "email": "asha@example.com",
    "mobile": "9876543210",
    "city": "Jaipur",
    "district": "Jaipur",
    "state": "Rajasthan",
    "pincode": "302001",
    "exam": "UPSC CSE",
    "attemptYear": 2027,
    "medium": "Hindi",
    "qualification": "Graduation",
    "discipline": "History",
    "college": "University of Rajasthan",
    "coaching": False,
}


async def test_profile_requires_session(client: AsyncClient) -> None:
    assert (await client.get("/api/profile")).status_code == 401
    assert (await client.put("/api/profile", json=PROFILE_FORM)).status_code == 401


async def test_save_and_get_profile(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    exists = await client.get("/api/profile/exists", headers=auth_headers)
    assert exists.json()["exists"] is False

    response = await client.put("/api/profile", json=PROFILE_FORM, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Profile saved successfully"
    assert body["userData"]["isProfileComplete"] is True

    profile = (await client.get("/api/profile", headers=auth_headers)).json()
    assert profile["uid"] == "user-1"
    assert profile["isProfileComplete"] is True
    assert profile["createdAt"] is not None
    for field, value in PROFILE_FORM.items():
        assert profile[field] == value

    exists = await client.get("/api/profile/exists", headers=auth_headers)
    assert exists.json()["exists"] is True
    assert exists.json()["userData"]["fullName"] == "Asha Verma"


async def test_save_profile_reports_form_errors(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    form = {**PROFILE_FORM, "fullName": "  ", "pincode": "30200", "email": "asha@"}
    del form["city"]

    response = await client.put("/api/profile", json=form, headers=auth_headers)

    assert response.status_code == 422
    assert response.json() == {
        "errors": {
            "fullName": "Full name is required",
            "city": "City is required",
            "email": "Invalid email format",
            "pincode": "Pincode must be 6 digits",
        }
    }


async def test_save_profile_checks_age(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    response = await client.put("/api/profile", json={**PROFILE_FORM, "dob": "1900-01-01"}, headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["errors"] == {"dob": "Age must be between 18 and 100 years"}


async def test_save_profile_rejects_unknown_fields(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    response = await client.put("/api/profile", json={**PROFILE_FORM, "isAdmin": True}, headers=auth_headers)

    assert response.status_code == 422
    assert "detail" in response.json()


async def test_get_missing_profile(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    response = await client.get("/api/profile", headers=auth_headers)

    assert response.status_code == 404
    assert response.json() == {"error": "The requested resource was not found.", "code": "not-found"}


async def test_patch_profile(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    await client.put("/api/profile", json=PROFILE_FORM, headers=auth_headers)

    response = await client.patch(
        "/api/profile",
        json={"city": "Kota", "coaching": True, "coachingName": "Vision IAS"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["updatedData"] == {"city": "Kota", "coaching": True, "coachingName": "Vision IAS"}
    profile = (await client.get("/api/profile", headers=auth_headers)).json()
    assert profile["city"] == "Kota"
    assert profile["coachingName"] == "Vision IAS"
    assert profile["fullName"] == "Asha Verma"
    assert profile["isProfileComplete"] is True


async def test_patch_profile_validation(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    await client.put("/api/profile", json=PROFILE_FORM, headers=auth_headers)

    bad_pincode = await client.patch("/api/profile", json={"pincode": "12"}, headers=auth_headers)
    assert bad_pincode.status_code == 422
    assert bad_pincode.json() == {"errors": {"pincode": "Pincode must be 6 digits"}}

    # The profile-complete flag is not an updatable field
    unset_complete = await client.patch("/api/profile", json={"isProfileComplete": False}, headers=auth_headers)
    assert unset_complete.status_code == 422

    profile = (await client.get("/api/profile", headers=auth_headers)).json()
    assert profile["isProfileComplete"] is True


async def test_patch_before_setup(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    response = await client.patch("/api/profile", json={"city": "Kota"}, headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["code"] == "not-found"

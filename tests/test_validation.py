"""Tests for submission validation and photo handling."""

import base64

import pytest

from internship_map.core.exceptions import ProfileValidationError
from internship_map.core.models import Coordinates, InternshipAddress, StudentProfile
from internship_map.validation import (
    MAX_PHOTO_BYTES,
    check_photo_count,
    encode_photo,
    validate_form,
)


def form_data(**overrides):
    data = {
        "firstName": "Maya",
        "lastName": "Chen",
        "email": "maya@example.com",
        "internshipCompany": "Grow Pittsburgh",
        "field": "food/community",
        "internshipContactName": "Rosa Diaz",
        "internshipSiteEmail": "rosa@growpgh.org",
        "isRemote": False,
        "addressInput": "6587 Hamilton Ave, Pittsburgh, PA",
        "startDate": "2025-01-06",
        "endDate": "2025-05-02",
        "question1_whatMadeUnique": "Working outside every day.",
        "question2_meaningfulContribution": "Planned the spring seedling sale.",
        "question3_skillsLearned": "Soil science and customer service.",
        "travelTimeDriving": "12",
        "travelTimeWalking": "",
        "travelTimeBus": "25",
        "rating": 5,
        "ratingComment": "Best internship ever",
    }
    data.update(overrides)
    return data


def test_valid_form():
    form = validate_form(form_data())
    assert form.first_name == "Maya"
    assert form.travel_time_driving == 12
    assert form.travel_time_walking is None
    assert form.question4_most_surprising is None


def test_snake_case_names_accepted():
    data = form_data()
    data["first_name"] = data.pop("firstName")
    assert validate_form(data).first_name == "Maya"


def test_whitespace_is_stripped_and_blank_required_rejected():
    assert validate_form(form_data(firstName="  Maya  ")).first_name == "Maya"
    with pytest.raises(ProfileValidationError):
        validate_form(form_data(firstName="   "))


def test_missing_field_is_named():
    data = form_data()
    del data["email"]
    with pytest.raises(ProfileValidationError) as exc_info:
        validate_form(data)
    assert exc_info.value.field == "email"
    assert "Missing required field 'email'" in exc_info.value.message


@pytest.mark.parametrize("email", ["not-an-email", "a@b", "two@@example.com"])
def test_invalid_email(email):
    with pytest.raises(ProfileValidationError):
        validate_form(form_data(email=email))


def test_field_tag_is_canonicalized_and_checked():
    assert validate_form(form_data(field="FOOD/COMMUNITY")).field == "food/community"
    with pytest.raises(ProfileValidationError):
        validate_form(form_data(field="astrophysics"))


def test_end_before_start_rejected():
    with pytest.raises(ProfileValidationError) as exc_info:
        validate_form(form_data(startDate="2025-05-02", endDate="2025-01-06"))
    assert "End date" in exc_info.value.message


def test_physical_needs_address():
    with pytest.raises(ProfileValidationError):
        validate_form(form_data(addressInput=""))


def test_selected_address_is_enough():
    form = validate_form(
        form_data(
            addressInput=None,
            selectedAddress={"street": "1 Main St", "city": "Pittsburgh"},
            selectedCoordinates={"lat": 40.44, "lng": -79.99},
        )
    )
    assert form.selected_address.city == "Pittsburgh"


def test_physical_needs_driving_or_bus():
    with pytest.raises(ProfileValidationError) as exc_info:
        validate_form(form_data(travelTimeDriving="", travelTimeBus="", travelTimeWalking="15"))
    assert "Car or Bus" in exc_info.value.message
    # Bus alone is fine
    assert validate_form(form_data(travelTimeDriving="")).travel_time_bus == 25


def test_remote_needs_no_address_or_times():
    form = validate_form(
        form_data(isRemote=True, addressInput="", travelTimeDriving="", travelTimeBus="")
    )
    assert form.is_remote


@pytest.mark.parametrize("rating", [0, 6, "five"])
def test_rating_range(rating):
    with pytest.raises(ProfileValidationError):
        validate_form(form_data(rating=rating))


def test_rating_comment_required():
    with pytest.raises(ProfileValidationError):
        validate_form(form_data(ratingComment=""))


def test_profile_data_builds_a_valid_profile():
    form = validate_form(form_data())
    address = InternshipAddress(
        street="6587 Hamilton Ave", city="Pittsburgh", full_address="6587 Hamilton Ave"
    )
    data = form.profile_data(address=address, coordinates=Coordinates(lat=40.45, lng=-79.9))

    profile = StudentProfile(id="profile_1", **data)
    assert profile.internship_address == address
    assert profile.travel_time.driving == 12
    assert profile.travel_time.walking is None
    assert "address_input" not in data


def test_profile_data_for_remote_has_no_location():
    form = validate_form(form_data(isRemote=True))
    data = form.profile_data()
    assert "internship_address" not in data
    assert "travel_time" not in data


# ============================================================================
# Photos
# ============================================================================


def test_encode_photo_data_url():
    url = encode_photo(b"\x89PNG", "image/png")
    assert url == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()


def test_encode_photo_rejects_type_and_size():
    with pytest.raises(ProfileValidationError):
        encode_photo(b"GIF89a", "image/gif")
    with pytest.raises(ProfileValidationError):
        encode_photo(b"\0" * (MAX_PHOTO_BYTES + 1), "image/jpeg")


def test_photo_count_limit():
    check_photo_count(["a"] * 9, 1)
    with pytest.raises(ProfileValidationError) as exc_info:
        check_photo_count(["a"] * 9, 2)
    assert "Maximum 10 photos" in exc_info.value.message

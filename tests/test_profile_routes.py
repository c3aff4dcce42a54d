from eduquest.models.student_subject import StudentSubject

VALID_PROFILE = {
    "child_name": "Ava",
    "subjects": ["math", "english"],
    "grade": 3,
    "preferred_email_time": "07:30 AM",
}


def test_profile_requires_session(client):
    assert client.post("/api/profile", json=VALID_PROFILE).status_code == 401
    assert client.get("/api/profile").status_code == 401


def test_read_profile_not_found(registered_client):
    response = registered_client.get("/api/profile")

    assert response.status_code == 404
    assert response.json()["detail"] == "Profile not found"


def test_create_and_read_profile(registered_client):
    response = registered_client.post("/api/profile", json=VALID_PROFILE)

    assert response.status_code == 200
    body = response.json()
    assert body["children"] == [{"child_name": "Ava", "grade": 3, "subjects": ["math", "english"]}]
    assert body["preferred_email_time"] == "07:30 AM"
    assert body["last_question_date"] is None

    assert registered_client.get("/api/profile").json() == body


def test_empty_subjects_rejected(registered_client):
    response = registered_client.post("/api/profile", json={**VALID_PROFILE, "subjects": []})

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid profile data"


def test_unknown_subject_rejected(registered_client):
    response = registered_client.post("/api/profile", json={**VALID_PROFILE, "subjects": ["art"]})

    assert response.status_code == 400


def test_blank_child_name_rejected(registered_client):
    response = registered_client.post("/api/profile", json={**VALID_PROFILE, "child_name": "   "})

    assert response.status_code == 400


def test_grade_out_of_range_rejected(registered_client):
    assert registered_client.post("/api/profile", json={**VALID_PROFILE, "grade": 0}).status_code == 400
    assert registered_client.post("/api/profile", json={**VALID_PROFILE, "grade": 11}).status_code == 400


def test_bad_time_format_rejected(registered_client):
    for bad in ["7:30 AM", "07:30", "13:00 PM", "07:30 am"]:
        response = registered_client.post("/api/profile", json={**VALID_PROFILE, "preferred_email_time": bad})
        assert response.status_code == 400, bad


def test_duplicate_subjects_collapsed(registered_client, db):
    registered_client.post("/api/profile", json={**VALID_PROFILE, "subjects": ["math", "math"]})

    assert db.query(StudentSubject).count() == 1


def test_resubmitting_a_child_replaces_subjects(registered_client, db):
    registered_client.post("/api/profile", json=VALID_PROFILE)
    response = registered_client.post("/api/profile", json={**VALID_PROFILE, "subjects": ["english"], "grade": 4})

    assert response.json()["children"] == [{"child_name": "Ava", "grade": 4, "subjects": ["english"]}]
    assert db.query(StudentSubject).count() == 1


def test_delivery_time_is_shared_across_children(registered_client, db):
    registered_client.post("/api/profile", json=VALID_PROFILE)
    response = registered_client.post("/api/profile", json={
        "child_name": "Ben",
        "subjects": ["math"],
        "grade": 6,
        "preferred_email_time": "05:00 PM",
    })

    body = response.json()
    assert [child["child_name"] for child in body["children"]] == ["Ava", "Ben"]
    assert body["preferred_email_time"] == "05:00 PM"
    times = {row.preferred_email_time for row in db.query(StudentSubject).all()}
    assert times == {"05:00 PM"}

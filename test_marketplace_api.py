"""
Test enrollments, lesson progress, reviews, leaderboard and dashboards
"""

from conftest import CORRECT_ANSWERS, auth_headers, login, signup


def enroll(client, course_id, headers):
    return client.post("/enrollments/", json={"course_id": course_id}, headers=headers)


def points(client, headers):
    return client.get("/auth/me", headers=headers).json()["points"]


# ==================== Enrollments ====================


def test_enrolling_awards_points_once(client, course, learner):
    response = enroll(client, course["id"], learner["headers"])
    assert response.status_code == 201
    enrollment = response.json()
    assert enrollment["course_title"] == "Python Basics"
    assert enrollment["progress_percent"] == 0
    assert points(client, learner["headers"]) == 10

    response = enroll(client, course["id"], learner["headers"])
    assert response.status_code == 400
    assert points(client, learner["headers"]) == 10


def test_cannot_enroll_in_draft(client, instructor, learner):
    draft = client.post(
        "/courses/",
        json={"title": "Draft", "description": "Not ready"},
        headers=instructor["headers"],
    ).json()
    assert enroll(client, draft["id"], learner["headers"]).status_code == 404


def test_completing_lessons_tracks_progress(client, course, enrolled_learner):
    headers = enrolled_learner["headers"]
    url = f"/enrollments/course/{course['id']}/lessons/{course['video_lesson_id']}/complete"

    response = client.put(url, headers=headers)
    assert response.status_code == 200, response.text
    data = response.json()
    assert data["points_awarded"] == 5
    assert data["user_points"] == 15
    assert data["enrollment"]["progress_percent"] == 50
    assert data["enrollment"]["completed"] is False

    # Completing twice awards nothing
    data = client.put(url, headers=headers).json()
    assert data["points_awarded"] == 0
    assert data["user_points"] == 15

    # Passing the quiz finishes the course
    client.post(
        f"/attempts/quiz/{course['quiz_id']}",
        json={"answers": CORRECT_ANSWERS},
        headers=headers,
    )
    enrollment = client.get(f"/enrollments/course/{course['id']}", headers=headers).json()
    assert enrollment["progress_percent"] == 100
    assert enrollment["completed"] is True
    assert enrollment["completed_at"] is not None
    assert points(client, headers) == 115


def test_quiz_lessons_cannot_be_completed_manually(client, course, enrolled_learner):
    url = f"/enrollments/course/{course['id']}/lessons/{course['quiz_lesson_id']}/complete"
    assert client.put(url, headers=enrolled_learner["headers"]).status_code == 400


def test_completing_lesson_requires_enrollment(client, course, learner):
    url = f"/enrollments/course/{course['id']}/lessons/{course['video_lesson_id']}/complete"
    assert client.put(url, headers=learner["headers"]).status_code == 404


def test_deleted_lessons_stop_counting_toward_progress(
    client, course, enrolled_learner, instructor
):
    headers = enrolled_learner["headers"]
    lessons_url = f"/courses/{course['id']}/lessons/"
    extra = [
        client.post(lessons_url, json={"title": title}, headers=instructor["headers"]).json()
        for title in ("Variables", "Loops")
    ]

    def complete(lesson_id):
        url = f"/enrollments/course/{course['id']}/lessons/{lesson_id}/complete"
        response = client.put(url, headers=headers)
        assert response.status_code == 200, response.text
        return response.json()["enrollment"]

    complete(course["video_lesson_id"])
    assert complete(extra[0]["id"])["progress_percent"] == 50

    for lesson_id in (course["video_lesson_id"], extra[0]["id"]):
        response = client.delete(f"{lessons_url}{lesson_id}", headers=instructor["headers"])
        assert response.status_code == 204

    # Only the quiz lesson and "Loops" remain, and the quiz is not passed
    enrollment = complete(extra[1]["id"])
    assert enrollment["progress_percent"] == 50
    assert enrollment["completed"] is False


def test_enrollment_listings(client, course, enrolled_learner, instructor, admin):
    mine = client.get("/enrollments/me", headers=enrolled_learner["headers"]).json()
    assert mine["total"] == 1
    assert mine["enrollments"][0]["course_id"] == course["id"]

    students = client.get("/enrollments/instructor", headers=instructor["headers"]).json()
    assert [e["user_name"] for e in students["enrollments"]] == ["Lin Learner"]

    everything = client.get("/enrollments/", headers=admin["headers"])
    assert everything.status_code == 200
    assert everything.json()["total"] == 1

    forbidden = client.get("/enrollments/", headers=enrolled_learner["headers"])
    assert forbidden.status_code == 403


# ==================== Reviews ====================


def test_reviews_update_course_rating(client, course, learner, other_learner):
    url = f"/courses/{course['id']}/reviews/"

    response = client.post(url, json={"rating": 5, "comment": "Great"}, headers=learner["headers"])
    assert response.status_code == 201, response.text
    assert response.json()["course"] == {
        "course_id": course["id"],
        "rating": 5.0,
        "reviews_count": 1,
    }
    assert response.json()["review"]["user_name"] == "Lin Learner"

    response = client.post(url, json={"rating": 2}, headers=other_learner["headers"])
    assert response.json()["course"]["rating"] == 3.5
    assert response.json()["course"]["reviews_count"] == 2

    listing = client.get(url).json()
    assert listing["total"] == 2

    detail = client.get(f"/courses/{course['id']}").json()
    assert detail["rating"] == 3.5
    assert detail["reviews_count"] == 2


def test_review_rating_must_be_one_to_five(client, course, learner):
    url = f"/courses/{course['id']}/reviews/"
    assert client.post(url, json={"rating": 0}, headers=learner["headers"]).status_code == 422
    assert client.post(url, json={"rating": 6}, headers=learner["headers"]).status_code == 422


def test_instructor_cannot_review_own_course(client, course, instructor):
    response = client.post(
        f"/courses/{course['id']}/reviews/", json={"rating": 5}, headers=instructor["headers"]
    )
    assert response.status_code == 400


def test_reviews_can_be_disabled(client, course, instructor, learner):
    client.put(
        f"/courses/{course['id']}", json={"allow_reviews": False}, headers=instructor["headers"]
    )
    response = client.post(
        f"/courses/{course['id']}/reviews/", json={"rating": 4}, headers=learner["headers"]
    )
    assert response.status_code == 400


# ==================== Leaderboard & dashboards ====================


def test_leaderboard_ranks_learners_by_points(client, course, learner, other_learner):
    enroll(client, course["id"], learner["headers"])
    enroll(client, course["id"], other_learner["headers"])
    client.post(
        f"/attempts/quiz/{course['quiz_id']}",
        json={"answers": CORRECT_ANSWERS},
        headers=other_learner["headers"],
    )

    users = client.get("/users/leaderboard").json()["users"]
    assert [(u["rank"], u["name"], u["points"]) for u in users] == [
        (1, "Sam Learner", 110),
        (2, "Lin Learner", 10),
    ]


def test_learner_dashboard(client, course, enrolled_learner):
    headers = enrolled_learner["headers"]
    client.post(
        f"/attempts/quiz/{course['quiz_id']}", json={"answers": [0, 0, 0]}, headers=headers
    )

    dashboard = client.get("/dashboard/", headers=headers).json()
    assert dashboard["role"] == "learner"
    assert dashboard["points"] == 10
    assert dashboard["rank"] == 1
    assert dashboard["enrolled_courses"] == 1
    assert dashboard["attempts"] == 1
    assert dashboard["passed_attempts"] == 0
    assert [e["course_id"] for e in dashboard["in_progress"]] == [course["id"]]


def test_instructor_dashboard_and_activity(client, course, enrolled_learner, instructor):
    headers = enrolled_learner["headers"]
    client.post(f"/courses/{course['id']}/reviews/", json={"rating": 4}, headers=headers)
    client.post(
        f"/attempts/quiz/{course['quiz_id']}", json={"answers": CORRECT_ANSWERS}, headers=headers
    )

    dashboard = client.get("/dashboard/", headers=instructor["headers"]).json()
    assert dashboard["role"] == "instructor"
    stats = dashboard["stats"]
    assert stats["total_courses"] == 1
    assert stats["students"] == 1
    assert stats["total_attempts"] == 1
    assert stats["pass_rate"] == 100.0
    assert stats["average_rating"] == 4.0
    assert {item["type"] for item in dashboard["recent_activity"]} == {"enrollment", "review"}

    activity = client.get("/users/activity", headers=instructor["headers"])
    assert activity.status_code == 200
    assert client.get("/users/stats", headers=headers).status_code == 403


def test_admin_dashboard_and_user_management(client, course, enrolled_learner, admin):
    dashboard = client.get("/dashboard/", headers=admin["headers"]).json()
    assert dashboard["role"] == "admin"
    assert dashboard["learners"] == 1
    assert dashboard["instructors"] == 1
    assert dashboard["published_courses"] == 1
    assert dashboard["total_enrollments"] == 1
    assert dashboard["top_learners"][0]["name"] == "Lin Learner"

    users = client.get("/users/", params={"role": "learner"}, headers=admin["headers"]).json()
    assert [u["email"] for u in users["users"]] == ["lin@example.com"]

    backoffice = client.get("/users/backoffice", headers=admin["headers"]).json()
    assert {u["role"] for u in backoffice} == {"admin", "instructor"}


def test_profile_update(client):
    headers = auth_headers(signup(client, "Lin Learner", "lin@example.com"))
    response = client.put("/users/profile", json={"bio": "Learning Python"}, headers=headers)
    assert response.status_code == 200
    assert response.json()["bio"] == "Learning Python"


# ==================== Attendees ====================


def attendees_url(course_id):
    return f"/enrollments/course/{course_id}/attendees"


def test_adding_new_attendee_creates_learner_account(client, course, instructor):
    response = client.post(
        attendees_url(course["id"]),
        json={"email": "New.Person@Example.com"},
        headers=instructor["headers"],
    )
    assert response.status_code == 201, response.text
    data = response.json()
    assert data["created"] is True
    assert data["user"]["email"] == "new.person@example.com"
    assert data["user"]["name"] == "new.person"
    assert data["user"]["role"] == "learner"
    assert data["enrollment"]["course_id"] == course["id"]
    assert data["enrollment"]["progress_percent"] == 0

    tokens = login(client, "new.person@example.com", data["temporary_password"])
    # Invitations award no enrollment points
    assert tokens["user"]["points"] == 0
    enrollment = client.get(
        f"/enrollments/course/{course['id']}", headers=auth_headers(tokens)
    )
    assert enrollment.status_code == 200


def test_adding_existing_user_as_attendee(client, course, instructor, learner):
    url = attendees_url(course["id"])
    response = client.post(
        url, json={"email": "lin@example.com"}, headers=instructor["headers"]
    )
    assert response.status_code == 201, response.text
    assert response.json()["created"] is False
    assert response.json()["temporary_password"] is None
    assert response.json()["user"]["id"] == learner["user"]["id"]

    duplicate = client.post(
        url, json={"email": "lin@example.com"}, headers=instructor["headers"]
    )
    assert duplicate.status_code == 400
    assert enroll(client, course["id"], learner["headers"]).status_code == 400


def test_only_course_managers_add_attendees(client, course, learner, admin):
    url = attendees_url(course["id"])
    payload = {"email": "someone@example.com"}
    assert client.post(url, json=payload, headers=learner["headers"]).status_code == 403

    other = auth_headers(signup(client, "Grace Instructor", "grace@example.com", "instructor"))
    assert client.post(url, json=payload, headers=other).status_code == 403

    assert client.post(url, json=payload, headers=admin["headers"]).status_code == 201


def test_instructor_cannot_attend_own_course(client, course, instructor):
    response = client.post(
        attendees_url(course["id"]),
        json={"email": "ada@example.com"},
        headers=instructor["headers"],
    )
    assert response.status_code == 400


def test_contact_attendees_reports_recipient_count(
    client, course, instructor, enrolled_learner, other_learner
):
    enroll(client, course["id"], other_learner["headers"])
    url = f"{attendees_url(course['id'])}/contact"
    message = {"subject": "Office hours", "message": "Join us on Friday"}

    response = client.post(url, json=message, headers=instructor["headers"])
    assert response.status_code == 200, response.text
    assert response.json() == {"success": True, "count": 2}

    assert client.post(url, json=message, headers=enrolled_learner["headers"]).status_code == 403
    empty = {"subject": "", "message": "x"}
    assert client.post(url, json=empty, headers=instructor["headers"]).status_code == 422


def test_invitation_only_course_rejects_self_enrollment(client, course, instructor, learner):
    response = client.put(
        f"/courses/{course['id']}",
        json={"access_rule": "invitation"},
        headers=instructor["headers"],
    )
    assert response.status_code == 200, response.text

    assert enroll(client, course["id"], learner["headers"]).status_code == 403

    response = client.post(
        attendees_url(course["id"]),
        json={"email": "lin@example.com"},
        headers=instructor["headers"],
    )
    assert response.status_code == 201
    mine = client.get("/enrollments/me", headers=learner["headers"]).json()
    assert mine["total"] == 1

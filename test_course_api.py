"""
Test course catalog, lesson management and media uploads
"""

from conftest import auth_headers, signup

COURSE = {
    "title": "Data Analysis with Pandas",
    "description": "DataFrames, grouping and plotting",
    "category": "Data Science",
    "tags": ["pandas", "data"],
}


def create_course(client, headers, **overrides):
    response = client.post("/courses/", json={**COURSE, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_instructor_creates_course(client, instructor):
    course = create_course(client, instructor["headers"], price="49.99")

    assert course["instructor_id"] == instructor["user"]["id"]
    assert course["instructor_name"] == "Ada Instructor"
    assert course["published"] is False
    assert course["is_paid"] is True
    assert course["reviews_count"] == 0
    assert course["rating"] is None


def test_learner_cannot_create_course(client, learner):
    response = client.post("/courses/", json=COURSE, headers=learner["headers"])
    assert response.status_code == 403


def test_drafts_are_hidden_from_everyone_but_owner(client, instructor, learner):
    draft = create_course(client, instructor["headers"])

    assert client.get(f"/courses/{draft['id']}").status_code == 404
    assert client.get(f"/courses/{draft['id']}", headers=learner["headers"]).status_code == 404
    response = client.get(f"/courses/{draft['id']}", headers=instructor["headers"])
    assert response.status_code == 200


def test_catalog_lists_published_courses(client, instructor):
    create_course(client, instructor["headers"], title="Draft course")
    create_course(client, instructor["headers"], title="Live course", published=True)

    data = client.get("/courses/").json()
    assert [c["title"] for c in data["courses"]] == ["Live course"]
    assert data["total"] == 1
    assert data["page"] == 1

    mine = client.get(
        "/courses/", params={"include_drafts": True}, headers=instructor["headers"]
    ).json()
    assert mine["total"] == 2


def test_catalog_search_and_category_filter(client, instructor):
    create_course(client, instructor["headers"], published=True)
    create_course(
        client,
        instructor["headers"],
        title="Intro to Rust",
        category="Programming",
        tags=["systems"],
        published=True,
    )

    by_tag = client.get("/courses/", params={"search": "pandas"}).json()
    assert [c["title"] for c in by_tag["courses"]] == ["Data Analysis with Pandas"]

    by_title = client.get("/courses/", params={"search": "rust"}).json()
    assert [c["title"] for c in by_title["courses"]] == ["Intro to Rust"]

    by_category = client.get("/courses/", params={"category": "Programming"}).json()
    assert by_category["total"] == 1

    assert client.get("/courses/categories").json() == ["Data Science", "Programming"]


def test_viewing_published_course_counts_views(client, instructor):
    course = create_course(client, instructor["headers"], published=True)

    first = client.get(f"/courses/{course['id']}").json()["views_count"]
    second = client.get(f"/courses/{course['id']}").json()["views_count"]
    assert second == first + 1


def test_only_owner_or_admin_can_edit(client, instructor, admin):
    course = create_course(client, instructor["headers"])
    rival = auth_headers(signup(client, "Rival", "rival@example.com", role="instructor"))

    response = client.put(f"/courses/{course['id']}", json={"published": True}, headers=rival)
    assert response.status_code == 403

    response = client.put(
        f"/courses/{course['id']}", json={"published": True}, headers=admin["headers"]
    )
    assert response.status_code == 200
    assert response.json()["published"] is True


def test_delete_course(client, instructor):
    course = create_course(client, instructor["headers"], published=True)

    response = client.delete(f"/courses/{course['id']}", headers=instructor["headers"])
    assert response.status_code == 204
    assert client.get(f"/courses/{course['id']}").status_code == 404


def test_lessons_are_appended_in_order(client, instructor):
    course = create_course(client, instructor["headers"], published=True)
    url = f"/courses/{course['id']}/lessons/"

    for title in ("Setup", "Series", "DataFrames"):
        response = client.post(url, json={"title": title}, headers=instructor["headers"])
        assert response.status_code == 201

    data = client.get(url).json()
    assert data["total"] == 3
    assert [l["title"] for l in data["lessons"]] == ["Setup", "Series", "DataFrames"]
    assert [l["position"] for l in data["lessons"]] == [0, 1, 2]
    assert all(l["has_quiz"] is False for l in data["lessons"])


def test_lesson_update_and_delete(client, instructor):
    course = create_course(client, instructor["headers"])
    url = f"/courses/{course['id']}/lessons/"
    lesson = client.post(url, json={"title": "Setup"}, headers=instructor["headers"]).json()

    response = client.put(
        f"{url}{lesson['id']}",
        json={"title": "Installing Python", "lesson_type": "document"},
        headers=instructor["headers"],
    )
    assert response.status_code == 200
    assert response.json()["lesson_type"] == "document"

    response = client.delete(f"{url}{lesson['id']}", headers=instructor["headers"])
    assert response.status_code == 204
    assert client.get(f"{url}{lesson['id']}", headers=instructor["headers"]).status_code == 404


def test_course_image_upload(client, instructor):
    course = create_course(client, instructor["headers"])

    response = client.post(
        f"/courses/{course['id']}/upload-image",
        files={"image": ("cover.png", b"\x89PNG\r\n\x1a\nfake-image", "image/png")},
        headers=instructor["headers"],
    )
    assert response.status_code == 200, response.text
    image_url = response.json()["image_url"]
    assert image_url.startswith("/storage/courses/")
    assert image_url.endswith(".png")

    stored = client.get(image_url)
    assert stored.status_code == 200
    assert stored.content == b"\x89PNG\r\n\x1a\nfake-image"


def test_upload_rejects_wrong_file_type(client, instructor):
    course = create_course(client, instructor["headers"])

    response = client.post(
        f"/courses/{course['id']}/upload-image",
        files={"image": ("notes.exe", b"MZ", "application/octet-stream")},
        headers=instructor["headers"],
    )
    assert response.status_code == 400


def test_lesson_media_upload_sets_content(client, instructor):
    course = create_course(client, instructor["headers"])
    url = f"/courses/{course['id']}/lessons/"
    lesson = client.post(url, json={"title": "Slides"}, headers=instructor["headers"]).json()

    response = client.post(
        f"{url}{lesson['id']}/upload-media",
        params={"kind": "document"},
        files={"media": ("slides.pdf", b"%PDF-1.4 fake", "application/pdf")},
        headers=instructor["headers"],
    )
    assert response.status_code == 200, response.text
    assert response.json()["lesson_type"] == "document"
    assert response.json()["content_url"].startswith("/storage/lessons/")


def test_quiz_lesson_keeps_its_type(client, course, instructor):
    url = f"/courses/{course['id']}/lessons/{course['quiz_lesson_id']}"

    response = client.post(
        f"{url}/upload-media",
        params={"kind": "video"},
        files={"media": ("intro.mp4", b"fake-video", "video/mp4")},
        headers=instructor["headers"],
    )
    assert response.status_code == 400

    response = client.put(url, json={"lesson_type": "document"}, headers=instructor["headers"])
    assert response.status_code == 400

    # Other edits to a quiz lesson are still allowed
    response = client.put(url, json={"title": "Final check"}, headers=instructor["headers"])
    assert response.status_code == 200
    lesson = client.get(url, headers=instructor["headers"]).json()
    assert lesson["lesson_type"] == "quiz"
    assert lesson["has_quiz"] is True


def test_profile_picture_upload(client, learner):
    response = client.post(
        "/users/profile/picture",
        files={"image": ("me.jpg", b"\xff\xd8\xff fake-jpeg", "image/jpeg")},
        headers=learner["headers"],
    )
    assert response.status_code == 200, response.text
    assert response.json()["profile_picture"].startswith("/storage/users/")

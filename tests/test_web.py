import re

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD

CSRF_PATTERN = re.compile(r'name="csrf_token" value="([^"]+)"')


def csrf_token(client, url="/account/login"):
    response = client.get(url)
    assert response.status_code == 200, response.text
    match = CSRF_PATTERN.search(response.text)
    assert match, "page has no anti-forgery token"
    return match.group(1)


def sign_in(client, email=ADMIN_EMAIL, password=ADMIN_PASSWORD):
    token = csrf_token(client)
    response = client.post(
        "/account/login",
        data={"email": email, "password": password, "next": "/", "csrf_token": token},
        follow_redirects=False
    )
    assert response.status_code == 303
    return response


def test_home_page_shows_counts(client, make_course):
    make_course()
    response = client.get("/")
    assert response.status_code == 200
    assert "Courses</a>: 1" in response.text


def test_anonymous_user_is_sent_to_login(client):
    response = client.get("/students/create", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/account/login?next=/students/create"


def test_bad_login_rerenders_with_error(client):
    token = csrf_token(client)
    response = client.post(
        "/account/login",
        data={"email": ADMIN_EMAIL, "password": "Wrong123!", "next": "/", "csrf_token": token}
    )
    assert response.status_code == 400
    assert "Invalid email or password." in response.text


def test_post_without_token_is_rejected(client):
    sign_in(client)
    response = client.post("/courses/create", data={"code": "CS101", "title": "Intro", "credits": "3"})
    assert response.status_code == 400
    assert "Invalid anti-forgery token." in response.text
    assert client.get("/api/courses").json() == []


def test_post_with_token_from_another_session_is_rejected(client):
    from fastapi.testclient import TestClient
    from student_management.main import app

    foreign_token = csrf_token(TestClient(app))
    own_token = csrf_token(client)
    assert own_token != foreign_token

    response = client.post(
        "/account/login",
        data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "next": "/", "csrf_token": foreign_token}
    )
    assert response.status_code == 400


def test_admin_creates_course_through_form(client):
    sign_in(client)
    token = csrf_token(client, "/courses/create")

    response = client.post(
        "/courses/create",
        data={"code": "CS101", "title": "Intro to Programming", "credits": "3", "csrf_token": token},
        follow_redirects=False
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/courses"

    page = client.get("/courses")
    assert "Course CS101 created." in page.text
    assert [c["code"] for c in client.get("/api/courses").json()] == ["CS101"]


def test_invalid_course_form_shows_field_errors(client):
    sign_in(client)
    token = csrf_token(client, "/courses/create")

    response = client.post(
        "/courses/create",
        data={"code": "", "title": "Intro", "credits": "99", "csrf_token": token}
    )
    assert response.status_code == 400
    assert 'class="error"' in response.text
    assert client.get("/api/courses").json() == []


def test_enroll_form_reports_every_problem(client):
    sign_in(client)
    token = csrf_token(client, "/enrollments/enroll")

    response = client.post(
        "/enrollments/enroll",
        data={"student_id": "99", "course_id": "98", "csrf_token": token}
    )
    assert response.status_code == 400
    assert "Student with ID 99 not found" in response.text
    assert "Course with ID 98 not found" in response.text


def test_enroll_and_remove_through_forms(client, make_student, make_course):
    student = make_student()
    course = make_course()
    sign_in(client)

    token = csrf_token(client, "/enrollments/enroll")
    response = client.post(
        "/enrollments/enroll",
        data={"student_id": str(student["id"]), "course_id": str(course["id"]), "csrf_token": token},
        follow_redirects=False
    )
    assert response.status_code == 303

    page = client.get(f"/enrollments/student/{student['id']}")
    assert "Intro to Programming" in page.text
    grouped = client.get("/enrollments/courses-for-student")
    assert student["full_name"] in grouped.text

    token = csrf_token(client, "/enrollments/enroll")
    duplicate = client.post(
        "/enrollments/enroll",
        data={"student_id": str(student["id"]), "course_id": str(course["id"]), "csrf_token": token}
    )
    assert duplicate.status_code == 400
    assert "Student is already enrolled in this course" in duplicate.text

    delete_url = f"/enrollments/delete/{student['id']}/{course['id']}"
    token = csrf_token(client, delete_url)
    response = client.post(delete_url, data={"csrf_token": token}, follow_redirects=False)
    assert response.status_code == 303
    assert client.get("/api/enrollments").json() == []


def test_edit_student_with_stale_version_shows_conflict(client, make_student):
    student = make_student()
    sign_in(client)
    edit_url = f"/students/{student['id']}/edit"
    form = {
        "id": str(student["id"]),
        "version": "1",
        "full_name": "Ann Kim",
        "student_number": student["student_number"],
        "email": student["email"],
        "user_id": "",
    }

    token = csrf_token(client, edit_url)
    response = client.post(edit_url, data={**form, "csrf_token": token}, follow_redirects=False)
    assert response.status_code == 303

    token = csrf_token(client, edit_url)
    response = client.post(edit_url, data={**form, "full_name": "Ann Park", "csrf_token": token})
    assert response.status_code == 400
    assert "changed by someone else" in response.text
    assert client.get(f"/api/students/{student['id']}").json()["full_name"] == "Ann Kim"


def test_student_account_cannot_open_admin_pages(client):
    token = csrf_token(client, "/account/register")
    response = client.post(
        "/account/register",
        data={
            "email": "ben@university.edu",
            "password": "Student1!",
            "confirm_password": "Student1!",
            "csrf_token": token,
        },
        follow_redirects=False
    )
    assert response.status_code == 303

    assert client.get("/students/create").status_code == 403
    assert client.get("/students").status_code == 200


def test_missing_record_page_is_not_found(client):
    response = client.get("/students/999")
    assert response.status_code == 404
    assert "Student with ID 999 not found" in response.text


def test_logout_clears_session(client):
    sign_in(client)
    token = csrf_token(client, "/")
    response = client.post("/account/logout", data={"csrf_token": token}, follow_redirects=False)
    assert response.status_code == 303

    assert client.get("/courses/create", follow_redirects=False).status_code == 303

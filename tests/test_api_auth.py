from opportunities.db.backend import MISSING_CREDENTIALS_MESSAGE

from conftest import ACME, JANE


def test_root_lists_endpoints(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["endpoints"]["worker_signup"] == "POST /worker/signup"


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "backend_configured" in response.json()


def test_worker_signup_opens_wizard_at_upload(client, wizards, auth_context):
    response = client.post("/worker/signup", json=JANE)

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "upload"
    assert body["entry"] == "signup"
    assert wizards.get(body["user_id"]) is not None
    assert auth_context.user_id == body["user_id"]


def test_worker_signup_password_mismatch(client, backend):
    response = client.post("/worker/signup", json={**JANE, "confirm_password": "other1"})

    assert response.status_code == 400
    assert response.json()["detail"] == "Passwords do not match"
    assert "sign_up" not in backend.calls
    assert backend.tables["workers"] == []


def test_worker_signup_duplicate_email(client):
    client.post("/worker/signup", json=JANE)

    response = client.post("/worker/signup", json=JANE)

    assert response.status_code == 400
    assert response.json()["detail"] == "This email is already registered. Please try logging in instead."


def test_signup_without_credentials(client, backend):
    backend.configured = False

    response = client.post("/worker/signup", json=JANE)

    assert response.status_code == 503
    assert response.json()["detail"] == MISSING_CREDENTIALS_MESSAGE


def test_employer_signup(client, backend):
    response = client.post("/employer/signup", json=ACME)

    assert response.status_code == 200
    assert response.json()["user_type"] == "employer"
    assert backend.tables["employers"][0]["full_name"] == "Acme Homes"


def test_worker_login_sets_session(client, auth_context):
    signup = client.post("/worker/signup", json=JANE).json()
    client.post("/auth/logout")

    response = client.post("/worker/login", json={"email": "jane@x.com", "password": "secret1"})

    assert response.status_code == 200
    assert response.json()["user_id"] == signup["user_id"]
    assert response.json()["user_type"] == "worker"
    assert auth_context.profile["full_name"] == "Jane Dlamini"


def test_worker_login_with_employer_account(client):
    client.post("/employer/signup", json=ACME)

    response = client.post("/worker/login", json={"email": "boss@x.com", "password": "secret1"})

    assert response.status_code == 403
    assert response.json()["detail"] == "This account is registered as an employer. Please use the employer login."


def test_employer_login_with_worker_account(client):
    client.post("/worker/signup", json=JANE)

    response = client.post("/employer/login", json={"email": "jane@x.com", "password": "secret1"})

    assert response.status_code == 403
    assert response.json()["detail"] == "This account is registered as a worker. Please use the worker login."


def test_login_bad_credentials(client):
    response = client.post("/employer/login", json={"email": "nobody@x.com", "password": "secret1"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid login credentials"


def test_login_without_credentials(client, backend):
    backend.configured = False

    response = client.post("/worker/login", json={"email": "jane@x.com", "password": "secret1"})

    assert response.status_code == 503
    assert response.json()["detail"] == MISSING_CREDENTIALS_MESSAGE


def test_logout_clears_session_and_wizard(client, wizards, auth_context):
    user_id = client.post("/worker/signup", json=JANE).json()["user_id"]

    response = client.post("/auth/logout")

    assert response.status_code == 200
    assert wizards.get(user_id) is None
    assert auth_context.user is None
    session = client.get("/auth/session").json()
    assert session["user_id"] is None
    assert session["loading"] is False


def test_refresh_requires_session(client):
    assert client.post("/auth/refresh").status_code == 401


def test_refresh_profile_twice_gives_same_profile(client):
    client.post("/worker/signup", json=JANE)

    first = client.post("/auth/refresh").json()["profile"]
    second = client.post("/auth/refresh").json()["profile"]

    assert first == second
    assert first["email"] == "jane@x.com"


def test_session_reports_worker_profile(client):
    user_id = client.post("/worker/signup", json=JANE).json()["user_id"]
    client.post("/auth/refresh")

    session = client.get("/auth/session").json()

    assert session["user_id"] == user_id
    assert session["user_type"] == "worker"
    assert session["profile"]["availability"] == "weekends"
    assert session["profile"]["is_verified"] is False

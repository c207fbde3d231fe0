import uuid


def test_signup_success(client):
    """Test : créer un utilisateur avec succès"""
    unique_id = str(uuid.uuid4())[:8]
    response = client.post("/auth/signup", json={
        "email": f"signup_{unique_id}@example.com",
        "username": f"testuser_signup_{unique_id}",
        "password": "password123",
        "department": "it"
    })
    assert response.status_code == 201
    data = response.json()
    assert data["username"] == f"testuser_signup_{unique_id}"
    assert data["roles"] == ["staff"]
    assert data["department"] == "it"
    assert "password_hash" not in data  # Le password ne doit pas être retourné

def test_signup_cannot_choose_roles(client):
    """Les rôles envoyés à l'inscription sont ignorés"""
    response = client.post("/auth/signup", json={
        "email": "boss@example.com",
        "username": "boss",
        "password": "password123",
        "roles": ["admin", "manager"]
    })
    assert response.status_code == 201
    assert response.json()["roles"] == ["staff"]

def test_signup_duplicate_email(client):
    """Test : impossible de créer 2 users avec le même email"""
    payload = {"email": "dup@example.com", "username": "user1", "password": "password123"}
    client.post("/auth/signup", json=payload)
    response = client.post("/auth/signup", json={**payload, "username": "user2"})
    assert response.status_code == 400
    assert "Email" in response.json()["detail"]

def test_login_and_refresh(client):
    """Test : se connecter puis rafraîchir le token"""
    client.post("/auth/signup", json={"email": "login@example.com", "username": "login", "password": "password123"})
    response = client.post("/auth/login", json={"email": "login@example.com", "password": "password123"})
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"

    response = client.post(f"/auth/refresh?refresh_token={data['refresh_token']}")
    assert response.status_code == 200
    assert "access_token" in response.json()

def test_refresh_token_is_not_an_access_token(client):
    client.post("/auth/signup", json={"email": "r@example.com", "username": "r", "password": "password123"})
    tokens = client.post("/auth/login", json={"email": "r@example.com", "password": "password123"}).json()
    response = client.get("/tasks", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert response.status_code == 401

def test_login_wrong_password(client):
    """Test : impossible de se connecter avec un mauvais password"""
    client.post("/auth/signup", json={"email": "w@example.com", "username": "w", "password": "correctpassword"})
    response = client.post("/auth/login", json={"email": "w@example.com", "password": "wrongpassword"})
    assert response.status_code == 401

def test_health_z(client):
    """Test : l'endpoint health fonctionne"""
    response = client.get("/health/z")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"

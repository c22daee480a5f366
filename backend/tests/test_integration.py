"""
Базовые тесты для интеграционного тестирования
"""


def test_health_check(client):
    """Тест health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["modules"] == ["assets"]


def test_requests_require_auth(client):
    """Заявки недоступны без токена"""
    response = client.get("/api/v1/requests/")
    assert response.status_code == 401


def test_module_info_endpoint(client):
    """Тест информационного endpoint модуля"""
    response = client.get("/api/v1/assets")
    assert response.status_code == 200
    assert response.json()["module"] == "assets"


def test_unknown_item_returns_domain_error(client, manager):
    from conftest import auth_headers

    response = client.get(
        "/api/v1/inventory/00000000-0000-0000-0000-000000000000",
        headers=auth_headers(manager),
    )
    assert response.status_code == 404
    assert response.json() == {"detail": "Inventory item not found", "errors": []}

"""
Tests for the health check endpoint.
"""

import pytest
from django.db import OperationalError
from django.urls import reverse


@pytest.mark.django_db
class TestHealthCheck:
    def test_healthy(self, client):
        response = client.get(reverse("health_check"))

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
        }

    def test_database_down(self, client, mocker):
        connection = mocker.patch("core.views.connection")
        connection.cursor.side_effect = OperationalError("could not connect")

        response = client.get(reverse("health_check"))

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"
        assert response.json()["database"] == "disconnected"

    def test_cache_down_is_reported_but_healthy(self, client, mocker):
        cache = mocker.patch("django.core.cache.cache")
        cache.set.side_effect = ConnectionError("refused")

        response = client.get(reverse("health_check"))

        assert response.status_code == 200
        assert response.json()["database"] == "connected"
        assert response.json()["cache"] == "disconnected"

"""
Tests for application setup: versioned docs, localization and health probe.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from coreweb.app import add_localization, api_version_prefix


class TestVersionedDocs:
    """Tests for per-version OpenAPI documents."""

    def test_documento_v1(self, client: TestClient):
        """Test the v1.0 document only lists v1.0 and unversioned routes."""
        response = client.get("/swagger/v1.0/swagger.json")

        assert response.status_code == 200
        schema = response.json()
        assert "/v1.0/products" in schema["paths"]
        assert "/v2.0/reports" not in schema["paths"]
        assert "/culture" in schema["paths"]
        assert schema["info"]["version"] == "v1.0"

    def test_documento_v2(self, client: TestClient):
        """Test the v2.0 document."""
        schema = client.get("/swagger/v2.0/swagger.json").json()

        assert "/v2.0/reports" in schema["paths"]
        assert "/v1.0/products" not in schema["paths"]

    def test_esquema_bearer(self, client: TestClient):
        """Test the Bearer security scheme is declared."""
        schema = client.get("/swagger/v1.0/swagger.json").json()

        bearer = schema["components"]["securitySchemes"]["Bearer"]
        assert bearer["type"] == "apiKey"
        assert bearer["name"] == "Authorization"
        assert bearer["in"] == "header"
        assert schema["security"] == [{"Bearer": []}]

    def test_swagger_ui(self, client: TestClient):
        """Test the Swagger UI lists every version."""
        response = client.get("/swagger")

        assert response.status_code == 200
        assert "/swagger/v1.0/swagger.json" in response.text
        assert "/swagger/v2.0/swagger.json" in response.text

    def test_cabecera_versiones_soportadas(self, client: TestClient):
        """Test the supported versions header."""
        response = client.get("/probe")

        assert response.headers["api-supported-versions"] == "1.0, 2.0"

    def test_prefijo_de_version(self):
        """Test the version route prefix."""
        assert api_version_prefix(1) == "/v1.0"
        assert api_version_prefix(2.5) == "/v2.5"


class TestLocalization:
    """Tests for request culture resolution."""

    @pytest.mark.parametrize("params,headers,expected", [
        ({}, {}, "en"),
        ({"culture": "es"}, {}, "es"),
        ({"culture": "es-CO"}, {}, "es"),
        ({}, {"Accept-Language": "fr-CA,fr;q=0.9"}, "fr-CA"),
        ({}, {"Accept-Language": "de-DE,es;q=0.8"}, "es"),
        ({}, {"Accept-Language": "de-DE"}, "en"),
        ({"culture": "tl"}, {}, "ts"),
    ])
    def test_cultura(self, client: TestClient, params, headers, expected):
        """Test the culture from the query string or Accept-Language."""
        response = client.get("/culture", params=params, headers=headers)

        assert response.json() == {"culture": expected}

    def test_cultura_por_defecto_no_soportada(self):
        """Test the default culture must be supported."""
        with pytest.raises(ValueError):
            add_localization(FastAPI(), ["es"], default_culture="en")


class TestHealthProbe:
    """Tests for the health probe."""

    def test_probe(self, client: TestClient):
        """Test the probe returns Running as plain text."""
        response = client.get("/probe")

        assert response.status_code == 200
        assert response.text == "Running"
        assert response.headers["content-type"].startswith("text/plain")

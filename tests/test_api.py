"""
Tests for the FastAPI web service.
"""

import os
import sys
import json
import pytest
import numpy as np
import cv2
from fastapi.testclient import TestClient

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from api.main import app


def encode_image(image, extension='.png'):
    """Encode an image array to file bytes."""
    ok, buffer = cv2.imencode(extension, image)
    assert ok
    return buffer.tobytes()


def create_flat_image(size=(480, 640)):
    return np.full((size[0], size[1], 3), 128, dtype=np.uint8)


class TestCompositionAPI:
    """Tests for the HTTP endpoints."""

    @pytest.fixture
    def client(self):
        with TestClient(app) as client:
            yield client

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data['status'] == "healthy"
        assert data['analyzer_ready'] is True

    def test_rules(self, client):
        response = client.get("/rules")

        assert response.status_code == 200
        rules = response.json()['rules']
        assert len(rules) == 7
        assert {"key": "rule_of_thirds", "label": "Rule of Thirds"} in rules

    def test_analyze_flat_image(self, client):
        files = {"file": ("flat.png", encode_image(create_flat_image()), "image/png")}
        response = client.post("/analyze", files=files)

        assert response.status_code == 200
        data = response.json()
        assert data['analysis']['frame_size'] == [640, 480]
        assert len(data['rule_scores']) == 7
        assert all(item['score'] == 0 for item in data['rule_scores'])
        assert data['top_matches'] == []
        assert data['suggestions'] == []
        assert data['request_id']

    def test_analyze_with_config(self, client):
        files = {"file": ("flat.png", encode_image(create_flat_image()), "image/png")}
        response = client.post("/analyze", files=files,
                               data={"config": json.dumps({"working_width": 320, "seed": 3})})

        assert response.status_code == 200
        assert response.json()['analysis']['frame_size'] == [320, 240]

    def test_unsupported_format(self, client):
        files = {"file": ("notes.txt", b"hello", "text/plain")}
        response = client.post("/analyze", files=files)

        assert response.status_code == 400

    def test_undecodable_image(self, client):
        files = {"file": ("broken.png", b"not really a png", "image/png")}
        response = client.post("/analyze", files=files)

        assert response.status_code == 400

    def test_invalid_config(self, client):
        files = {"file": ("flat.png", encode_image(create_flat_image()), "image/png")}
        response = client.post("/analyze", files=files, data={"config": json.dumps({"top_n": 99})})

        assert response.status_code == 400
        assert "top_n must be an integer between 1 and 7" in response.json()['detail']['errors']

    def test_config_is_not_json(self, client):
        files = {"file": ("flat.png", encode_image(create_flat_image()), "image/png")}
        response = client.post("/analyze", files=files, data={"config": "{top_n"})

        assert response.status_code == 400

    def test_coach_bundle(self, client):
        analysis = {
            "scale": 1.0,
            "frame_size": [640, 480],
            "diagonal": {"score": 0.5, "best": "TRBL"}
        }
        response = client.post("/coach", json={"analysis": analysis})

        assert response.status_code == 200
        data = response.json()
        assert len(data['rule_scores']) == 7
        assert data['suggestions'][0]['rule'] == "diagonal"
        assert data['suggestions'][0]['nudges'] == [{"kind": "rotate", "degrees": 3.0}]

    def test_coach_round_trip(self, client):
        files = {"file": ("flat.png", encode_image(create_flat_image()), "image/png")}
        analysis = client.post("/analyze", files=files).json()['analysis']

        response = client.post("/coach", json={"analysis": analysis, "min_score": 0, "top_n": 2})

        assert response.status_code == 200
        assert len(response.json()['top_matches']) == 2

    def test_coach_malformed_bundle(self, client):
        response = client.post("/coach", json={"analysis": {"frame_size": 5}})

        assert response.status_code == 400

    def test_coach_section_is_not_an_object(self, client):
        response = client.post("/coach", json={"analysis": {"subject": [1, 2]}})

        assert response.status_code == 400

    def test_coach_unknown_diagonal(self, client):
        response = client.post("/coach", json={"analysis": {"diagonal": {"best": "UP"}}})

        assert response.status_code == 400


if __name__ == '__main__':
    pytest.main([__file__])

from typing import Optional, Dict, Any
from fastapi.testclient import TestClient

def api_call(client: TestClient, method: str, path: str, headers: Optional[Dict[str, str]] = None, json: Optional[Any] = None, params: Optional[Dict[str, Any]] = None, expected_status: int = 200):
    response = client.request(method, path, headers=headers, json=json, params=params)
    try:
        body = response.json()
    except ValueError:
        body = response.text
    assert response.status_code == expected_status, f"{method} {path} => {response.status_code}, body={body}, json={json}"
    return body

def assert_error(body: Dict[str, Any], code: str):
    assert body["success"] is False
    assert body["error"]["code"] == code, body
    assert body["message"] == body["error"]["message"]
    assert body["path"]
    assert body["timestamp"]

import json

import pytest
from fastapi.testclient import TestClient

import server
from server import app

client = TestClient(app)


def _rpc(method, params=None, id=1):
    body = {"jsonrpc": "2.0", "id": id, "method": method}
    if params is not None:
        body["params"] = params
    return client.post("/mcp", json=body)


def test_health():
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["tools"] >= 12
    assert data["companies"] == 4
    assert data["dataLoaded"] is True


def test_health_reports_failed_load(monkeypatch):
    from company_store import CompanyStore
    from plugins import company_db

    monkeypatch.setattr(company_db, "store", CompanyStore(loaded=False))
    data = client.get("/health").json()
    assert data["companies"] == 0
    assert data["dataLoaded"] is False


def test_initialize_over_mcp():
    resp = _rpc("initialize", {"protocolVersion": "2025-03-26"})
    result = resp.json()["result"]
    assert result["protocolVersion"] == server.PROTOCOL_VERSION
    assert result["serverInfo"]["name"] == "yc-lists"
    assert "tools" in result["capabilities"]


def test_initialize_endpoint():
    resp = client.post("/v1/initialize", json={"id": 1, "jsonrpc": "2.0", "params": {"version": "test"}})
    assert resp.status_code == 200
    assert resp.json()["result"]["serverId"] == server.SERVER_ID


def test_tools_list():
    resp = _rpc("tools/list")
    tools = {t["name"]: t for t in resp.json()["result"]["tools"]}
    assert "yc_search_companies" in tools
    assert tools["yc_get_company"]["inputSchema"]["required"] == ["companyId"]


def test_v1_tool_listing_matches():
    names = {t["name"] for t in client.get("/v1/tool").json()}
    assert "yc_get_company_stats" in names


def test_tools_call_returns_text_content():
    resp = _rpc("tools/call", {"name": "yc_get_companies_by_batch", "arguments": {"batch": "summer 2014"}})
    result = resp.json()["result"]
    assert result["isError"] is False
    page = json.loads(result["content"][0]["text"])
    assert page["total"] == 1
    assert page["companies"][0]["name"] == "Bankwise"


def test_tools_call_invalid_arguments_is_in_band_error():
    resp = _rpc("tools/call", {"name": "yc_get_companies_by_batch", "arguments": {}})
    assert resp.status_code == 200
    result = resp.json()["result"]
    assert result["isError"] is True
    assert result["content"][0]["text"].startswith("Error: Invalid arguments for yc_get_companies_by_batch")


def test_tools_call_unknown_tool():
    resp = _rpc("tools/call", {"name": "yc_nope", "arguments": {}})
    error = resp.json()["error"]
    assert error["code"] == server.INVALID_PARAMS
    assert "Unknown tool" in error["message"]


def test_unknown_method():
    error = _rpc("resources/list").json()["error"]
    assert error["code"] == server.METHOD_NOT_FOUND


def test_notification_is_accepted_without_body():
    resp = client.post("/mcp", json={"jsonrpc": "2.0", "method": "notifications/initialized"})
    assert resp.status_code == 202


def test_batch_request():
    resp = client.post(
        "/mcp",
        json=[
            {"jsonrpc": "2.0", "id": 1, "method": "ping"},
            {"jsonrpc": "2.0", "method": "notifications/initialized"},
            {"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "yc_get_top_companies"}},
        ],
    )
    data = resp.json()
    assert [item["id"] for item in data] == [1, 2]
    assert data[0]["result"] == {}


def test_parse_error():
    resp = client.post("/mcp", content="{oops", headers={"content-type": "application/json"})
    assert resp.json()["error"]["code"] == server.PARSE_ERROR


def test_sse_response():
    resp = client.post(
        "/mcp",
        json={"jsonrpc": "2.0", "id": 7, "method": "ping"},
        headers={"accept": "text/event-stream"},
    )
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/event-stream")
    data_lines = [line for line in resp.text.splitlines() if line.startswith("data:")]
    assert json.loads(data_lines[0][len("data:"):].strip())["id"] == 7


def test_invoke_endpoint():
    resp = client.post(
        "/v1/tool/yc_get_company/invoke",
        json={"id": 1, "jsonrpc": "2.0", "method": "tools/call", "params": {"companyId": "1"}},
    )
    assert resp.status_code == 200
    assert resp.json()["result"]["company"]["name"] == "Ledgerly"


def test_invoke_endpoint_errors():
    resp = client.post("/v1/tool/missing/invoke", json={"id": 1, "params": {}})
    assert resp.status_code == 404
    resp = client.post("/v1/tool/yc_get_companies_by_tag/invoke", json={"id": 1, "params": {}})
    assert resp.status_code == 400


@pytest.mark.parametrize("argv", [["--port", "0"], ["--port", "70000"], ["--port", "abc"], ["--stdio", "--http"]])
def test_cli_rejects_bad_arguments(argv):
    with pytest.raises(SystemExit) as exc:
        server.main(argv)
    assert exc.value.code == 2


def test_cli_selects_transport(monkeypatch):
    calls = []
    monkeypatch.setattr(server, "run_stdio", lambda: calls.append("stdio"))
    monkeypatch.setattr(server, "run_servers", lambda port=None: calls.append(("http", port)))
    server.main([])
    server.main(["--port", "3000"])
    server.main(["--http"])
    assert calls == ["stdio", ("http", 3000), ("http", None)]


@pytest.mark.asyncio
async def test_dispatch_rejects_invalid_request():
    response = await server.dispatch(["not", "a", "request"])
    assert response["error"]["code"] == server.INVALID_REQUEST
    assert response["id"] is None

import pytest
from fastapi.testclient import TestClient

from api.main import app
from services.dashboard_service import DashboardService, LoadStatus

# Lifespan is not entered: each test installs its own service on app.state
client = TestClient(app)


@pytest.fixture
def install_service():
    def install(service):
        app.state.dashboard_service = service
        return service

    yield install
    if hasattr(app.state, "dashboard_service"):
        del app.state.dashboard_service


@pytest.fixture
def ready(install_service, dataset):
    return install_service(DashboardService.from_dataset(dataset))


def test_root_and_health(ready):
    assert client.get("/").status_code == 200

    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "dataset": "ready"}


def test_routes_answer_503_while_loading(install_service):
    install_service(DashboardService())

    response = client.get("/dashboard/nodes")
    assert response.status_code == 503
    assert response.json()["detail"] == "Dataset is still loading"
    assert client.get("/health").json()["dataset"] == "loading"


def test_routes_answer_503_after_failed_load(install_service):
    service = install_service(DashboardService())
    service.status = LoadStatus.FAILED
    service.error = "Failed to load citation relations: boom"

    response = client.get("/dashboard/edges")
    assert response.status_code == 503
    assert response.json()["detail"] == "Failed to load citation dataset"
    assert client.get("/api/llm-topics").status_code == 503
    assert client.get("/health").json()["dataset"] == "failed"


def test_nodes_and_edges(ready):
    nodes = client.get("/dashboard/nodes").json()
    assert [n["id"] for n in nodes][:2] == ["LLM-Cluster 0", "LLM-Cluster 1"]

    edges = client.get("/dashboard/edges").json()
    assert {(e["source"], e["target"], e["weight"]) for e in edges} == {
        ("LLM-Cluster 0", "Psych-Cluster 0", 2),
        ("LLM-Cluster 0", "Psych-Cluster 1", 2),
        ("LLM-Cluster 1", "Psych-Cluster 0", 1),
    }

    graph = client.get("/dashboard/graph").json()
    assert len(graph["nodes"]) == 5


def test_time_series(ready):
    overall = client.get("/dashboard/time-series").json()
    assert [p["citations"] for p in overall] == [1, 3, 4]

    topic = client.get("/dashboard/time-series", params={"llm_topic": "Cluster 0"}).json()
    assert topic == [
        {"month": "2023-01", "citations": 1},
        {"month": "2023-02", "citations": 2},
    ]

    series = client.get("/dashboard/time-series/Cluster%200/by-psych-topic").json()
    assert [s["psych_topic_key"] for s in series] == ["Cluster 0", "Cluster 1"]


def test_theory_table_sorting(ready):
    rows = client.get("/dashboard/theories/Cluster%200").json()
    assert [r["theory"] for r in rows] == [
        "Attachment Theory", "Dual Process Theory", "Schema Theory", "Cognitive Load Theory",
    ]

    rows = client.get("/dashboard/theories/Cluster%200", params={"sort": "citations"}).json()
    assert [r["citations"] for r in rows] == [10, 10, 5, 1]

    assert client.get("/dashboard/theories/Cluster%200", params={"sort": "name"}).status_code == 422
    assert client.get("/dashboard/theories/Cluster%209").json() == []


def test_theory_distribution(ready):
    rows = client.get("/dashboard/theory-distribution", params={"theory": "Attachment Theory"}).json()
    assert {r["topic_key"]: r["citations"] for r in rows} == {"Cluster 0": 1, "Cluster 1": 1, "Cluster 2": 0}

    assert client.get("/dashboard/theory-distribution", params={"theory": "Phrenology"}).json() == []
    assert client.get("/dashboard/theory-distribution").status_code == 422


def test_data_quality(ready):
    report = client.get("/dashboard/data-quality").json()
    assert report["unresolved_title_count"] == 1
    assert report["topics"]["Cluster 0"]["unresolved_theory_names"] == ["Unknown Theory"]


def test_idle_view(ready):
    view = client.post("/dashboard/view", json={}).json()

    assert view["selection"] == {"llm_topic": None, "psych_topic": None, "theory": None}
    assert view["line_chart"]["mode"] == "overall"
    assert view["line_chart"]["title"] == "Overall Citation Flow from LLM Research to Psychology Papers"
    assert view["line_chart"]["can_reset"] is False
    assert view["theory_table"] is None
    assert view["theory_chart"] is None


def test_fully_selected_view(ready):
    view = client.post("/dashboard/view", json={
        "state": {"llm_topic": "Cluster 0", "psych_topic": "Cluster 0", "theory": "Attachment Theory"},
        "table_sort": "citations",
    }).json()

    assert view["graph"]["selected_llm_node"] == "LLM-Cluster 0"
    assert view["graph"]["selected_psych_node"] == "Psych-Cluster 0"

    line = view["line_chart"]
    assert line["mode"] == "multi"
    assert line["title"] == "Citation Flow from Multimodal Learning to Psychology Topics"
    assert line["can_reset"] is True
    assert len(line["series"]) == 2

    table = view["theory_table"]
    assert table["title"] == "Subtopics and Theories in Social-Clinical"
    assert table["sort"] == "citations"
    assert table["rows"][0]["theory"] == "Attachment Theory"

    chart = view["theory_chart"]
    assert chart["title"] == "Citation Distribution for Attachment Theory Across LLM Topics"
    assert chart["colors"] == [r["color"] for r in chart["rows"]]


def test_selection_events(ready):
    response = client.post("/dashboard/selection", json={"event": "llm_topic", "value": "Cluster 1"})
    assert response.status_code == 200
    body = response.json()
    assert body["state"]["llm_topic"] == "Cluster 1"
    assert body["phases"] == {"llm": "LLMSelected", "psych": "PsychIdle"}

    response = client.post("/dashboard/selection", json={
        "state": {"psych_topic": "Cluster 0", "theory": "Schema Theory"},
        "event": "psych_topic",
        "value": "Cluster 1",
    })
    assert response.json()["state"] == {"llm_topic": None, "psych_topic": "Cluster 1", "theory": None}


def test_selection_rejects_bad_events(ready):
    assert client.post("/dashboard/selection", json={"event": "theory"}).status_code == 400
    assert client.post("/dashboard/selection", json={"event": "zoom", "value": "x"}).status_code == 422


def test_relation_exports(ready):
    topics = client.get("/api/llm-topics").json()
    assert topics["Cluster 0"]["topic"] == "Multimodal Learning"
    assert [d["paperId"] for d in topics["Cluster 0"]["docs"]] == ["L1", "L2", "L3"]

    pool = client.get("/api/theory-pool").json()
    assert pool["Cluster 0"]["Schema Theory"]["citation"] == 10

    for path in ("/api/psych-topics", "/api/secondary-clusters", "/api/filtered-papers",
                 "/api/papers-info", "/api/refs-info"):
        assert client.get(path).status_code == 200


def test_view_accepts_graph_node_ids(ready):
    view = client.post("/dashboard/view", json={
        "state": {"llm_topic": "LLM-Cluster 1", "psych_topic": "Psych-Cluster 1"},
    }).json()

    assert view["selection"] == {"llm_topic": "Cluster 1", "psych_topic": "Cluster 1", "theory": None}
    assert view["graph"]["selected_llm_node"] == "LLM-Cluster 1"
    assert view["line_chart"]["title"] == "Citation Flow from Educational Application to Psychology Topics"
    assert view["theory_table"]["rows"][0]["theory"] == "Constructivism"

import pytest

from storm_reporter.common.errors import MalformedIdentifierError
from storm_reporter.naming.identifier import parse_metric, sanitize, worker_metric_name

TOPOLOGY = "siteTestCrawlIndexDelete-9-1544624008"

COMPONENT_METRIC = (
    f"storm.worker.{TOPOLOGY}.499a88998a53.documentExtractor.status.19.6701-emitted"
)
DISRUPTOR_METRIC = (
    f"storm.worker.{TOPOLOGY}.499a88998a53.documentExtractor.28."
    "6701-disruptor-executor[28 28]-send-queue-capacity"
)
SYSTEM_METRIC = (
    f"storm.worker.{TOPOLOGY}.499a88998a53.__system.-1."
    "6700-disruptor-receive-queue[74 74]-population"
)


def test_component_metric_with_stream_id() -> None:
    parsed = parse_metric(COMPONENT_METRIC)

    assert parsed.name == "storm_worker_emitted"
    assert parsed.grouping_key == {
        "topology_id": TOPOLOGY,
        "host_name": "null",
        "component_id": "documentExtractor",
        "stream_id": "status",
        "task_id": "19",
        "worker_port": "6701",
    }


def test_disruptor_metric_without_stream_id() -> None:
    parsed = parse_metric(DISRUPTOR_METRIC)

    assert parsed.name == "storm_worker_disruptor_executor_28_28__send_queue_capacity"
    assert "stream_id" not in parsed.grouping_key
    assert parsed.grouping_key["task_id"] == "28"
    assert parsed.grouping_key["worker_port"] == "6701"
    assert parsed.grouping_key["component_id"] == "documentExtractor"


def test_negative_task_id_is_kept_signed() -> None:
    parsed = parse_metric(SYSTEM_METRIC)

    assert parsed.name == "storm_worker_disruptor_receive_queue_74_74__population"
    assert parsed.grouping_key["task_id"] == "-1"
    assert parsed.grouping_key["component_id"] == "__system"
    assert parsed.grouping_key["worker_port"] == "6700"
    assert "stream_id" not in parsed.grouping_key


def test_short_example_from_docs() -> None:
    parsed = parse_metric("storm.worker.T-1.hostX.documentExtractor.status.19.6701-emitted")

    assert parsed.name == "storm_worker_emitted"
    assert parsed.grouping_key["topology_id"] == "T-1"
    assert parsed.grouping_key["stream_id"] == "status"


@pytest.mark.parametrize("host", ["hostX", "499a88998a53", "null", "worker-7"])
def test_host_name_is_always_null(host: str) -> None:
    parsed = parse_metric(f"storm.worker.T.{host}.comp.3.6700-acked")
    assert parsed.grouping_key["host_name"] == "null"


def test_grouping_key_order() -> None:
    parsed = parse_metric(COMPONENT_METRIC)
    assert list(parsed.grouping_key) == [
        "topology_id",
        "host_name",
        "component_id",
        "stream_id",
        "task_id",
        "worker_port",
    ]


@pytest.mark.parametrize(
    "identifier",
    [
        "storm.worker.T.host.comp.6700-acked",
        "storm.worker.T.host.comp.s.x.3.6700-acked",
        "storm.nimbus.T.host.comp.3.6700-acked",
        "worker.T.host.comp.3.6700-acked",
        "storm.worker.T.host.comp.three.6700-acked",
        "storm.worker.T.host.comp.3.port-acked",
        "storm.worker.T.host.comp.3.6700acked",
        "storm.worker.T.host.comp.3.6700-",
        "storm.worker.T.host.comp.3.-acked",
        "",
    ],
)
def test_malformed_identifiers_raise(identifier: str) -> None:
    with pytest.raises(MalformedIdentifierError) as excinfo:
        parse_metric(identifier)
    assert excinfo.value.identifier == identifier


def test_malformed_identifier_is_value_error() -> None:
    with pytest.raises(ValueError):
        parse_metric("storm.worker.too.short")


def test_name_suffix_keeps_dashes_after_first() -> None:
    parsed = parse_metric("storm.worker.T.h.c.1.6700-a-b-c")
    assert parsed.name == "storm_worker_a_b_c"
    assert parsed.grouping_key["worker_port"] == "6700"


def test_sanitize_maps_each_char_to_one_underscore() -> None:
    assert sanitize("[28 28]") == "_28_28_"
    assert sanitize("a]-[b") == "a___b"
    assert sanitize("Mixed_Case09") == "Mixed_Case09"


@pytest.mark.parametrize("text", ["", "plain", "with space", "a.b-c[d]", "ünïcødé", "__x__"])
def test_sanitize_is_length_preserving_and_idempotent(text: str) -> None:
    once = sanitize(text)
    assert len(once) == len(text)
    assert sanitize(once) == once


def test_worker_metric_name_round_trip() -> None:
    identifier = worker_metric_name(
        "disruptor-executor[28 28]-send-queue-capacity",
        TOPOLOGY,
        "documentExtractor",
        28,
        6701,
        host="499a88998a53",
    )
    assert identifier == DISRUPTOR_METRIC
    assert parse_metric(identifier).grouping_key["task_id"] == "28"


def test_worker_metric_name_with_stream_and_dotted_host() -> None:
    identifier = worker_metric_name(
        "emitted", TOPOLOGY, "documentExtractor", 19, 6701, stream_id="status", host="node1.example.com"
    )
    assert identifier == (
        f"storm.worker.{TOPOLOGY}.node1_example_com.documentExtractor.status.19.6701-emitted"
    )
    parsed = parse_metric(identifier)
    assert parsed.grouping_key["stream_id"] == "status"
    assert parsed.grouping_key["host_name"] == "null"


def test_worker_metric_name_defaults_host(monkeypatch) -> None:
    monkeypatch.setattr("socket.gethostname", lambda: "box.local")
    identifier = worker_metric_name("acked", "T", "c", -1, 6700)
    assert identifier == "storm.worker.T.box_local.c.-1.6700-acked"


def test_series_name_carries_grouping_key_as_tags() -> None:
    parsed = parse_metric("storm.worker.T-1.hostX.bolt.7.6700-acked")
    assert parsed.series_name == (
        "storm_worker_acked;topology_id=T-1;host_name=null;component_id=bolt;task_id=7;worker_port=6700"
    )

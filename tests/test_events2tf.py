"""Tests for replaying editor events."""

import json
from pathlib import Path

import pytest

from errors import EventError
from events2tf import load_events, main, replay

SESSION = [
    {"op": "add", "kind": "vpc", "as": "net", "position": [40, 80]},
    {"op": "configure", "node": "net", "key": "cidrBlock", "value": "10.1.0.0/16"},
    {"op": "add", "kind": "sg", "as": "web_sg"},
    {"op": "configure", "node": "web_sg", "key": "vpcId", "ref": "net"},
    {"op": "add", "kind": "ec2", "as": "web"},
    {"op": "connect", "source": "web", "target": "web_sg"},
    {"op": "connect", "source": "net", "target": "web"},
]


class TestReplay:
    """Tests for the event replay."""

    def test_session(self) -> None:
        result = replay(SESSION)
        store = result.state.store
        vpc_id, sg_id, ec2_id = (result.aliases[a] for a in ("net", "web_sg", "web"))

        assert len(store) == 3
        assert result.accepted == 1
        assert len(result.rejected) == 1
        assert store.get(vpc_id).position == (40, 80)
        assert store.get(sg_id).config["vpcId"] == vpc_id
        assert store.get(ec2_id).config["securityGroupIds"] == sg_id

        text = result.state.generate()
        assert 'cidr_block = "10.1.0.0/16"' in text
        assert f"aws_security_group.{sg_id}.id" in text

    def test_delete_and_disconnect(self) -> None:
        result = replay(SESSION + [
            {"op": "disconnect", "source": "web_sg", "target": "web"},
            {"op": "delete", "node": "net"},
        ])
        store = result.state.store
        assert len(store) == 2
        assert store.edges == ()
        assert "securityGroupIds" not in store.get(result.aliases["web"]).config

    def test_literal_node_id(self) -> None:
        result = replay([{"op": "add", "kind": "s3", "as": "b"}])
        node_id = result.aliases["b"]
        replay([{"op": "configure", "node": node_id, "key": "bucketName", "value": "x"}], result.state)
        assert result.state.store.get(node_id).config["bucketName"] == "x"

    @pytest.mark.parametrize(
        "event",
        [
            {"op": "explode"},
            {"op": "add"},
            {"op": "add", "kind": "lambda"},
            {"op": "configure", "node": "nope", "key": "ami", "value": "x"},
            {"op": "connect", "source": "web"},
            "not-an-object",
            {"op": "add", "kind": "vpc", "position": 5},
            {"op": "add", "kind": "vpc", "position": [1, "y"]},
            {"op": "add", "kind": ["vpc"]},
            {"op": "add", "kind": "vpc", "as": ["net"]},
            {"op": "connect", "source": ["web"], "target": "web"},
            {"op": "delete", "node": {"id": "web"}},
            {"op": "configure", "node": "web", "key": 3, "value": "x"},
            {"op": "configure", "node": "web", "key": "ami", "value": ["x"]},
            {"op": "configure", "node": "web", "key": "ami", "ref": 7},
        ],
    )
    def test_malformed_event(self, event) -> None:
        with pytest.raises(EventError):
            replay([{"op": "add", "kind": "ec2", "as": "web"}, event])

    def test_read_only_key(self) -> None:
        with pytest.raises(EventError) as exc:
            replay([
                {"op": "add", "kind": "ec2", "as": "web"},
                {"op": "configure", "node": "web", "key": "securityGroupIds", "value": "sg-1"},
            ])
        assert exc.value.index == 1

    def test_load_events(self) -> None:
        assert load_events({"events": SESSION}) == SESSION
        assert load_events(SESSION) == SESSION
        with pytest.raises(EventError):
            load_events({"nodes": []})


class TestMain:
    """Tests for the command line."""

    def test_writes_file(self, tmp_path: Path, capsys) -> None:
        events = tmp_path / "session.json"
        events.write_text(json.dumps({"events": SESSION}))
        out = tmp_path / "infraq.tf"

        assert main([str(events), "-o", str(out), "--check"]) == 0
        text = out.read_text()
        assert text.count("resource ") == 3
        err = capsys.readouterr().err
        assert "HCL OK: 3 resource block(s)" in err
        assert "1 connection(s) rejected" in err

    def test_writes_into_directory(self, tmp_path: Path) -> None:
        events = tmp_path / "session.json"
        events.write_text(json.dumps(SESSION))
        assert main([str(events), "-o", str(tmp_path)]) == 0
        assert (tmp_path / "infraq.tf").exists()

    def test_prints_to_stdout(self, tmp_path: Path, capsys) -> None:
        events = tmp_path / "session.json"
        events.write_text(json.dumps([{"op": "add", "kind": "s3"}]))
        assert main([str(events)]) == 0
        assert 'resource "aws_s3_bucket"' in capsys.readouterr().out

    def test_missing_input(self, tmp_path: Path, capsys) -> None:
        assert main([str(tmp_path / "nope.json")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_bad_event(self, tmp_path: Path, capsys) -> None:
        events = tmp_path / "session.json"
        events.write_text(json.dumps([{"op": "add", "kind": "rds"}]))
        assert main([str(events)]) == 1
        assert "Error: event 0" in capsys.readouterr().err

    def test_input_is_directory(self, tmp_path: Path, capsys) -> None:
        assert main([str(tmp_path)]) == 1
        assert "Error: cannot read" in capsys.readouterr().err

    def test_input_not_utf8(self, tmp_path: Path, capsys) -> None:
        events = tmp_path / "session.json"
        events.write_bytes(b'[{"op": "add", "kind": "\xff"}]')
        assert main([str(events)]) == 1
        assert "is not UTF-8 text" in capsys.readouterr().err

    def test_creates_output_directory(self, tmp_path: Path) -> None:
        events = tmp_path / "session.json"
        events.write_text(json.dumps(SESSION))
        out = tmp_path / "out"
        assert main([str(events), "-o", f"{out}/"]) == 0
        assert (out / "infraq.tf").read_text().count("resource ") == 3

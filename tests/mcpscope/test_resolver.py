"""Tests for ConfigResolver."""

import itertools
import logging

import pytest

from mcpscope.config.models import HttpTransport, ServerSpec, StdioTransport
from mcpscope.primitives.errors import ValidationError

IDS = ["a", "b", "c"]


def enabled_map(servers):
    return {server.id: server.enabled for server in servers}


class TestListResolved:
    """enabled is False exactly when the id is in G or P."""

    @pytest.mark.parametrize(
        "global_disabled,project_disabled",
        [
            (set(g), set(p))
            for g in itertools.chain.from_iterable(
                itertools.combinations(IDS, n) for n in range(len(IDS) + 1)
            )
            for p in [(), ("a",), ("b", "c"), ("a", "b", "c")]
        ],
    )
    def test_enabled_iff_not_disabled(
        self, resolver, primary_path, write_json, global_disabled, project_disabled
    ):
        write_json(primary_path, {
            "mcpServers": {i: {"command": "x"} for i in IDS},
            "disabledMcpServers": sorted(global_disabled),
            "projects": {
                "/p": {"disabledMcpServers": sorted(project_disabled)},
                "/other": {"disabledMcpServers": IDS},
            },
        })
        resolved = enabled_map(resolver.list_resolved("/p"))
        assert resolved == {i: i not in global_disabled | project_disabled for i in IDS}

    def test_global_view_ignores_project_lists(self, resolver, primary_path, write_json):
        write_json(primary_path, {
            "mcpServers": {"a": {"command": "x"}},
            "projects": {"/p": {"disabledMcpServers": ["a"]}},
        })
        assert enabled_map(resolver.list_resolved()) == {"a": True}
        assert enabled_map(resolver.list_resolved("")) == {"a": True}

    def test_on_disk_order(self, resolver, primary_path, write_json):
        write_json(primary_path, {"mcpServers": {
            "zeta": {"command": "x"}, "alpha": {"command": "y"}, "mid": {"url": "https://m.test"},
        }})
        assert [s.id for s in resolver.list_resolved()] == ["zeta", "alpha", "mid"]

    def test_invalid_entries_are_dropped(self, resolver, primary_path, write_json, caplog):
        write_json(primary_path, {"mcpServers": {
            "ok": {"command": "x"},
            "empty": {"args": ["y"]},
            "relative": {"type": "http", "url": "/mcp"},
            "junk": "string",
        }})
        with caplog.at_level(logging.WARNING, logger="mcpscope.config.resolver"):
            servers = resolver.list_resolved()
        assert [s.id for s in servers] == ["ok"]
        assert "empty" in caplog.text
        assert "relative" in caplog.text

    def test_forbidden_project_path_is_ignored(self, resolver, primary_path, write_json):
        write_json(primary_path, {
            "mcpServers": {"a": {"command": "x"}},
            "projects": {"/p": {"disabledMcpServers": ["a"]}},
        })
        assert enabled_map(resolver.list_resolved("__proto__")) == {"a": True}

    def test_secondary_fallback_ignores_project(
        self, resolver, primary_path, secondary_path, write_json
    ):
        write_json(primary_path, {"mcpServers": {}})
        write_json(secondary_path, {"mcpServers": [
            {"id": "a", "enabled": True, "server": {"command": "x"}},
            {"id": "b", "enabled": False, "server": {"url": "https://b.test/mcp"}},
        ]})
        expected = {"a": True, "b": False}
        assert enabled_map(resolver.list_resolved()) == expected
        assert enabled_map(resolver.list_resolved("/p")) == expected

    def test_end_to_end_example(self, resolver, primary_path, write_json):
        write_json(primary_path, {
            "mcpServers": {
                "fs": {"command": "node", "args": ["fs-server.js"]},
                "remote": {"url": "https://example.test/mcp"},
            },
            "disabledMcpServers": ["remote"],
        })
        servers = resolver.list_resolved()
        assert [(s.id, s.enabled) for s in servers] == [("fs", True), ("remote", False)]
        assert isinstance(servers[0].spec.transport, StdioTransport)
        assert isinstance(servers[1].spec.transport, HttpTransport)


class TestGet:
    def test_found(self, resolver, primary_path, write_json):
        write_json(primary_path, {"mcpServers": {"a": {"command": "x"}}, "disabledMcpServers": ["a"]})
        server = resolver.get("a")
        assert server.id == "a"
        assert server.enabled is False

    def test_missing(self, resolver):
        with pytest.raises(KeyError):
            resolver.get("nope")


class TestMutations:
    """upsert/delete round trips through list_resolved."""

    def test_project_scoped_round_trip(self, resolver, primary_path, write_json):
        write_json(primary_path, {"mcpServers": {"other": {"command": "y"}}})
        spec = ServerSpec("fs", StdioTransport("node", ["fs-server.js"]))
        resolver.upsert(spec, enabled=False, project_path="/p")
        assert enabled_map(resolver.list_resolved("/p"))["fs"] is False
        assert enabled_map(resolver.list_resolved())["fs"] is True
        assert enabled_map(resolver.list_resolved("/q"))["fs"] is True

    def test_delete_scrubs_every_scope(self, resolver, primary_path, write_json):
        write_json(primary_path, {
            "mcpServers": {"fs": {"command": "node"}, "keep": {"command": "x"}},
            "disabledMcpServers": ["fs"],
            "projects": {"/p": {"disabledMcpServers": ["fs"]}},
        })
        assert resolver.delete("fs") is True
        for project in (None, "/p"):
            assert "fs" not in enabled_map(resolver.list_resolved(project))
        view = resolver.store.load()
        assert "fs" not in view.global_disabled
        assert all("fs" not in ids for ids in view.project_disabled.values())

        # Re-adding does not resurrect the old disabled state.
        resolver.upsert(ServerSpec("fs", StdioTransport("node")), enabled=True)
        assert enabled_map(resolver.list_resolved("/p"))["fs"] is True

    def test_upsert_rejects_invalid_spec(self, resolver, secondary_path):
        spec = ServerSpec("bad", HttpTransport("not-a-url"))
        with pytest.raises(ValidationError):
            resolver.upsert(spec)
        assert not secondary_path.exists()

    def test_upsert_rejects_forbidden_project(self, resolver):
        with pytest.raises(ValidationError):
            resolver.upsert(ServerSpec("fs", StdioTransport("node")), False, "constructor")

    def test_validate(self, resolver):
        assert resolver.validate({"command": "node"}) == []
        assert [e.field for e in resolver.validate({})] == ["command"]

    def test_parse(self, resolver):
        spec = resolver.parse("r", {"type": "sse", "url": "https://r.test/sse"})
        assert spec.transport.kind == "sse"

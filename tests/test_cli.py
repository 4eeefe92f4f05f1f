"""
End-to-end tests for the lowmain command surface.

The store boundary is replaced with FakeStore, so every command runs the real
pipeline (parse, resolve connection, compile, normalize, envelope) without a
Neo4j server.
"""

import json
import os
import unittest
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from lowmain import __version__
from lowmain.cli import EXIT_PANIC, app, main
from lowmain.error_handling import ConnectionFailed, ConstraintViolation
from lowmain.store import GraphStore

from fakes import FakeStore, make_node, make_relationship

os.environ["NO_COLOR"] = "1"

runner = CliRunner()

ENV = {"NEO4J_PASSWORD": "secret"}


def invoke(args, store=None, env=None):
    """Invoke the CLI with GraphStore.connect patched to return store."""
    connect = AsyncMock(return_value=store if store is not None else FakeStore())
    with patch.object(GraphStore, "connect", connect):
        result = runner.invoke(app, args, env=ENV if env is None else env)
    return result, connect


def envelope(result):
    return json.loads(result.stdout.strip().splitlines()[-1])


class TestPing(unittest.TestCase):

    def test_ping(self):
        result, connect = invoke(["ping", "--uri", "bolt://db:7687", "--db", "movies"], FakeStore([[{"ok": 1}]]))
        self.assertEqual(result.exit_code, 0)
        data = envelope(result)
        self.assertEqual(data["ok"], True)
        self.assertEqual(data["command"], "ping")
        self.assertEqual(data["result"], {"connected": True, "uri": "bolt://db:7687", "db": "movies"})
        self.assertEqual([a["command"] for a in data["next_actions"]],
                         ["lowmain schema", "lowmain query", "lowmain node find"])
        config = connect.call_args[0][0]
        self.assertEqual(config.uri, "bolt://db:7687")
        self.assertEqual(config.database, "movies")

    def test_missing_password(self):
        result, connect = invoke(["ping"], env={"NEO4J_PASSWORD": None})
        self.assertEqual(result.exit_code, 1)
        data = envelope(result)
        self.assertEqual(data["ok"], False)
        self.assertEqual(data["command"], "ping")
        self.assertEqual(data["error"]["code"], "CONNECTION_NOT_CONFIGURED")
        self.assertFalse(data["error"]["retryable"])
        connect.assert_not_called()

    def test_password_flag(self):
        result, connect = invoke(["ping", "--password", "flag-secret"], env={"NEO4J_PASSWORD": None})
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(connect.call_args[0][0].password.get_secret_value(), "flag-secret")

    def test_connection_failure_is_retryable(self):
        result, _ = invoke(["ping"], FakeStore(error=ConnectionFailed("Connection refused")))
        self.assertEqual(result.exit_code, 1)
        data = envelope(result)
        self.assertEqual(data["error"]["code"], "CONNECTION_FAILED")
        self.assertTrue(data["error"]["retryable"])
        self.assertIn("bolt://localhost:7687", data["fix"])


class TestQuery(unittest.TestCase):

    def test_read_query_truncated(self):
        store = FakeStore([[{"i": i} for i in range(10)]])
        result, _ = invoke(["query", "UNWIND range(1, 10) AS i RETURN i", "--limit", "3"], store)
        self.assertEqual(result.exit_code, 0)
        data = envelope(result)["result"]
        self.assertEqual(data["rows"], [{"i": 0}, {"i": 1}, {"i": 2}])
        self.assertEqual(data["count"], 3)
        self.assertTrue(data["truncated"])
        self.assertEqual(data["limit"], 3)
        self.assertEqual(data["cypher"], "UNWIND range(1, 10) AS i RETURN i")

    def test_read_query_not_truncated(self):
        store = FakeStore([[{"n": make_node(1, name="Alice")}]])
        result, _ = invoke(["query", "MATCH (n) RETURN n"], store)
        data = envelope(result)["result"]
        self.assertFalse(data["truncated"])
        self.assertEqual(data["limit"], 100)
        self.assertEqual(data["rows"][0]["n"], {"_id": 1, "_labels": ["Person"], "name": "Alice"})

    def test_params_are_typed(self):
        store = FakeStore([[]])
        invoke(["query", "MATCH (n) WHERE n.age > $min RETURN n", "--params", '{"min": 30, "tag": null}'], store)
        self.assertEqual(store.queries[0].params, {"min": 30, "tag": "null"})

    def test_write_mode(self):
        store = FakeStore()
        result, _ = invoke(["query", "CREATE (n:Tmp)", "--write"], store)
        self.assertEqual(result.exit_code, 0)
        data = envelope(result)
        self.assertEqual(data["result"], {"executed": True, "cypher": "CREATE (n:Tmp)", "mode": "write"})
        self.assertNotIn("truncated", data["result"])
        self.assertEqual(data["next_actions"][0]["command"], "lowmain schema")
        self.assertEqual(len(store.run_queries), 1)

    def test_invalid_params_json(self):
        result, connect = invoke(["query", "RETURN 1", "--params", "{bad"])
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(envelope(result)["error"]["code"], "INVALID_PARAMS")
        connect.assert_not_called()

    def test_missing_query_text(self):
        result, connect = invoke(["query"])
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(envelope(result)["error"]["code"], "INVALID_PARAMS")
        connect.assert_not_called()

    def test_syntax_error_envelope(self):
        from lowmain.error_handling import classify_error

        store = FakeStore(error=classify_error(RuntimeError("Invalid input 'MATC'")))
        result, _ = invoke(["query", "MATC (n) RETURN n"], store)
        data = envelope(result)
        self.assertEqual(data["error"]["code"], "CYPHER_SYNTAX_ERROR")
        self.assertIn("lowmain schema", data["fix"])


class TestNodeCommands(unittest.TestCase):

    def test_find_respects_limit(self):
        nodes = [{"n": make_node(i, name=f"P{i}")} for i in range(1, 6)]
        store = FakeStore([nodes])
        result, _ = invoke(["node", "find", "--label", "Person", "--limit", "2"], store)
        self.assertEqual(result.exit_code, 0)
        data = envelope(result)
        self.assertEqual(data["result"]["count"], 2)
        self.assertEqual([n["_id"] for n in data["result"]["nodes"]], [1, 2])
        self.assertEqual(data["result"]["label"], "Person")
        self.assertEqual(data["result"]["cypher"], "MATCH (n:`Person`) RETURN n LIMIT 2")
        commands = [a["command"] for a in data["next_actions"]]
        self.assertEqual(commands, ["lowmain node get 1", "lowmain node get 2", "lowmain node create --label=Person"])

    def test_find_with_where(self):
        store = FakeStore([[]])
        result, _ = invoke(["node", "find", "--label=Person", "--where=name=Alice"], store)
        self.assertEqual(result.exit_code, 0)
        self.assertEqual(store.queries[0].params, {"val": "Alice"})
        self.assertEqual(envelope(result)["result"]["count"], 0)

    def test_find_missing_label(self):
        result, connect = invoke(["node", "find"])
        self.assertEqual(envelope(result)["error"]["code"], "INVALID_PARAMS")
        connect.assert_not_called()

    def test_find_bad_where(self):
        result, connect = invoke(["node", "find", "--label=Person", "--where=name"])
        data = envelope(result)
        self.assertEqual(data["error"]["code"], "INVALID_PARAMS")
        self.assertIn("prop=value", data["error"]["message"])
        connect.assert_not_called()

    def test_get(self):
        store = FakeStore([[{"n": make_node(4, ("Person",), name="Alice")}]])
        result, _ = invoke(["node", "get", "4"], store)
        data = envelope(result)
        self.assertEqual(data["result"], {"node": {"_id": 4, "_labels": ["Person"], "name": "Alice"}})
        self.assertEqual(store.queries[0].params, {"id": 4})
        self.assertEqual(len(data["next_actions"]), 5)

    def test_get_missing(self):
        result, _ = invoke(["node", "get", "999"], FakeStore([[]]))
        self.assertEqual(result.exit_code, 1)
        data = envelope(result)
        self.assertEqual(data["command"], "node get")
        self.assertEqual(data["error"]["code"], "NODE_NOT_FOUND")
        self.assertIn("999", data["error"]["message"])
        self.assertIn("999", data["fix"])

    def test_get_invalid_id(self):
        result, connect = invoke(["node", "get", "abc"])
        data = envelope(result)
        self.assertEqual(data["error"]["code"], "INVALID_PARAMS")
        self.assertIn("abc", data["error"]["message"])
        connect.assert_not_called()

    def test_get_missing_id(self):
        result, connect = invoke(["node", "get"])
        self.assertEqual(envelope(result)["error"]["code"], "INVALID_PARAMS")
        connect.assert_not_called()

    def test_create(self):
        store = FakeStore([[{"n": make_node(7, ("Person",), name="Alice", age=30)}]])
        result, _ = invoke(["node", "create", "--label=Person", '--props={"name": "Alice", "age": 30}'], store)
        self.assertEqual(result.exit_code, 0)
        data = envelope(result)
        self.assertEqual(data["command"], "node create")
        self.assertTrue(data["result"]["created"])
        self.assertEqual(data["result"]["node"]["_id"], 7)
        self.assertEqual(store.queries[0].params, {"prop_0": "Alice", "prop_1": 30})
        self.assertEqual(
            [a["command"] for a in data["next_actions"]],
            ["lowmain node get 7", "lowmain rel create --from=7", "lowmain node find --label=Person"],
        )

    def test_create_bad_props(self):
        result, connect = invoke(["node", "create", "--label=Person", "--props=[1]"])
        self.assertEqual(envelope(result)["error"]["code"], "INVALID_PARAMS")
        connect.assert_not_called()

    def test_update(self):
        store = FakeStore([[{"n": make_node(7, name="Bob")}]])
        result, _ = invoke(["node", "update", "7", '--set={"name": "Bob"}'], store)
        data = envelope(result)
        self.assertTrue(data["result"]["updated"])
        self.assertEqual(data["result"]["node"]["name"], "Bob")
        self.assertEqual(store.queries[0].params, {"prop_0": "Bob", "id": 7})

    def test_update_empty_set(self):
        result, connect = invoke(["node", "update", "7", "--set={}"])
        self.assertEqual(envelope(result)["error"]["code"], "INVALID_PARAMS")
        connect.assert_not_called()

    def test_update_missing(self):
        result, _ = invoke(["node", "update", "7", '--set={"a": 1}'], FakeStore([[]]))
        self.assertEqual(envelope(result)["error"]["code"], "NODE_NOT_FOUND")

    def test_delete(self):
        store = FakeStore([[{"deleted": 1}]])
        result, _ = invoke(["node", "delete", "3", "--detach"], store)
        data = envelope(result)
        self.assertEqual(data["result"], {"deleted": True, "id": 3, "detach": True})
        self.assertIn("DETACH DELETE", store.queries[0].text)

    def test_delete_missing(self):
        result, _ = invoke(["node", "delete", "3"], FakeStore([[{"deleted": 0}]]))
        self.assertEqual(envelope(result)["error"]["code"], "NODE_NOT_FOUND")

    def test_delete_with_relationships_without_detach(self):
        error = ConstraintViolation("Cannot delete node<3>, because it still has relationships.")
        result, _ = invoke(["node", "delete", "3"], FakeStore(error=error))
        data = envelope(result)
        self.assertEqual(data["error"]["code"], "CONSTRAINT_VIOLATION")
        self.assertFalse(data["error"]["retryable"])


class TestRelCommands(unittest.TestCase):

    def test_find(self):
        rows = [{"r": make_relationship(9, 1, 2, "KNOWS", since=2020), "from_id": 1, "to_id": 2}]
        store = FakeStore([rows])
        result, _ = invoke(["rel", "find", "--from=1", "--type=KNOWS"], store)
        data = envelope(result)
        self.assertEqual(data["result"]["count"], 1)
        self.assertEqual(
            data["result"]["relationships"][0],
            {"_id": 9, "_start_node_id": 1, "_end_node_id": 2, "_type": "KNOWS", "since": 2020},
        )
        self.assertEqual(store.queries[0].params, {"from_id": 1})

    def test_find_invalid_from(self):
        result, connect = invoke(["rel", "find", "--from=x"])
        self.assertEqual(envelope(result)["error"]["code"], "INVALID_PARAMS")
        connect.assert_not_called()

    def test_create(self):
        store = FakeStore([[{"r": make_relationship(9, 1, 2, "KNOWS")}]])
        result, _ = invoke(["rel", "create", "--from=1", "--to=2", "--type=KNOWS"], store)
        data = envelope(result)
        self.assertTrue(data["result"]["created"])
        self.assertEqual(
            [a["command"] for a in data["next_actions"]],
            ["lowmain node get 1", "lowmain node get 2", "lowmain rel delete 9"],
        )

    def test_create_missing_type(self):
        result, connect = invoke(["rel", "create", "--from=1", "--to=2"])
        self.assertEqual(envelope(result)["error"]["code"], "INVALID_PARAMS")
        connect.assert_not_called()

    def test_create_missing_endpoint(self):
        result, _ = invoke(["rel", "create", "--from=1", "--to=999", "--type=KNOWS"], FakeStore([[]]))
        self.assertEqual(envelope(result)["error"]["code"], "QUERY_FAILED")

    def test_delete(self):
        result, _ = invoke(["rel", "delete", "9"], FakeStore([[{"deleted": 1}]]))
        self.assertEqual(envelope(result)["result"], {"deleted": True, "id": 9})

    def test_delete_missing(self):
        result, _ = invoke(["rel", "delete", "9"], FakeStore([[{"deleted": 0}]]))
        data = envelope(result)
        self.assertEqual(data["error"]["code"], "REL_NOT_FOUND")
        self.assertIn("9", data["fix"])


class TestSchemaCommands(unittest.TestCase):

    def test_overview(self):
        store = FakeStore([
            [{"label": "Movie"}, {"label": "Person"}],
            [{"relationshipType": "ACTED_IN"}],
            [{"name": "idx", "type": "RANGE", "labelsOrTypes": ["Person"], "properties": ["name"], "state": "ONLINE"}],
            [],
        ])
        result, _ = invoke(["schema"], store)
        self.assertEqual(result.exit_code, 0)
        data = envelope(result)
        self.assertEqual(data["command"], "schema")
        self.assertEqual(data["result"]["labels"], ["Movie", "Person"])
        self.assertEqual(data["result"]["relationship_types"], ["ACTED_IN"])
        self.assertEqual(data["result"]["indexes"][0]["name"], "idx")
        self.assertEqual(data["result"]["constraints"], [])
        commands = [a["command"] for a in data["next_actions"]]
        self.assertEqual(commands[:2], ["lowmain node find --label=Movie", "lowmain node find --label=Person"])

    def test_overview_empty_database(self):
        result, _ = invoke(["schema"], FakeStore([[], [], [], []]))
        data = envelope(result)
        self.assertEqual(data["result"]["labels"], [])
        self.assertEqual([a["command"] for a in data["next_actions"]], ["lowmain node create", "lowmain query"])

    def test_labels_with_group_options(self):
        store = FakeStore([[{"label": "Person"}]])
        result, connect = invoke(["schema", "--db", "movies", "labels"], store)
        data = envelope(result)
        self.assertEqual(data["command"], "schema labels")
        self.assertEqual(data["result"], {"labels": ["Person"]})
        self.assertEqual(connect.call_args[0][0].database, "movies")

    def test_types(self):
        result, _ = invoke(["schema", "types"], FakeStore([[{"relationshipType": "KNOWS"}]]))
        data = envelope(result)
        self.assertEqual(data["result"], {"relationship_types": ["KNOWS"]})
        self.assertEqual(data["next_actions"][0]["command"], "lowmain rel find --type=KNOWS")

    def test_count(self):
        store = FakeStore([[{"node_count": 12}], [{"rel_count": 30}]])
        result, _ = invoke(["schema", "count"], store)
        self.assertEqual(envelope(result)["result"], {"node_count": 12, "relationship_count": 30})

    def test_constraints_and_indexes(self):
        result, _ = invoke(["schema", "constraints"], FakeStore([[]]))
        self.assertEqual(envelope(result)["result"], {"constraints": []})
        result, _ = invoke(["schema", "indexes"], FakeStore([[]]))
        self.assertEqual(envelope(result)["result"], {"indexes": []})


class TestTopLevel(unittest.TestCase):

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.stdout)

    def test_exactly_one_envelope_on_stdout(self):
        result, _ = invoke(["node", "get", "1"], FakeStore([[{"n": make_node(1)}]]))
        lines = [line for line in result.stdout.splitlines() if line.strip()]
        self.assertEqual(len(lines), 1)


def test_unexpected_fault_prints_panic(capsys):
    with patch("lowmain.cli.app", side_effect=RuntimeError("kaboom")):
        with pytest.raises(SystemExit) as exc_info:
            main()
    assert exc_info.value.code == EXIT_PANIC
    data = json.loads(capsys.readouterr().err.strip())
    assert data == {
        "ok": False,
        "error": {"message": "Internal error: kaboom", "code": "PANIC", "retryable": False},
        "fix": "Report this bug",
    }


def run_main(args, capsys):
    """Run the console entry point; return (exit code, stdout envelope, stderr)."""
    with pytest.raises(SystemExit) as exc_info:
        main(args)
    captured = capsys.readouterr()
    lines = [line for line in captured.out.splitlines() if line.strip()]
    return exc_info.value.code, lines, captured.err


class TestEntryPoint:
    """Malformed command lines still answer with exactly one JSON envelope."""

    def test_flag_without_value(self, capsys):
        code, lines, _ = run_main(["node", "find", "--label"], capsys)
        assert code == 1
        assert len(lines) == 1
        data = json.loads(lines[0])
        assert data["ok"] is False
        assert data["command"] == "node find"
        assert data["error"]["code"] == "INVALID_PARAMS"
        assert "--label" in data["error"]["message"]
        assert data["error"]["retryable"] is False

    def test_unknown_option(self, capsys):
        code, lines, _ = run_main(["node", "get", "1", "--detach"], capsys)
        assert code == 1
        data = json.loads(lines[0])
        assert data["command"] == "node get"
        assert data["error"]["code"] == "INVALID_PARAMS"
        assert "--detach" in data["error"]["message"]

    def test_unknown_command(self, capsys):
        code, lines, _ = run_main(["node", "frobnicate"], capsys)
        assert code == 1
        assert json.loads(lines[0])["error"]["code"] == "INVALID_PARAMS"

    def test_classified_error_exit_code(self, capsys):
        code, lines, _ = run_main(["node", "get", "abc"], capsys)
        assert code == 1
        assert json.loads(lines[0])["error"]["code"] == "INVALID_PARAMS"

    def test_success_exit_code(self, capsys):
        store = FakeStore([[{"n": make_node(4, name="Alice")}]])
        with patch.object(GraphStore, "connect", AsyncMock(return_value=store)):
            with patch.dict(os.environ, ENV):
                code, lines, _ = run_main(["node", "get", "4"], capsys)
        assert code == 0
        assert len(lines) == 1
        data = json.loads(lines[0])
        assert data["ok"] is True
        assert data["result"]["node"]["_id"] == 4

    def test_version(self, capsys):
        code, lines, _ = run_main(["--version"], capsys)
        assert code == 0
        assert lines == [f"lowmain {__version__}"]

    def test_panic_exit_code_is_distinct(self):
        assert EXIT_PANIC not in (0, 1, 2)


if __name__ == "__main__":
    unittest.main()

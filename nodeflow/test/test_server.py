import asyncio
import json
import logging
import pytest
from fastapi import HTTPException

from nodeflow.core.EventBus import GRAPH_EVENTS, NODE_ADD, PROPERTY_CHANGE, PropertyChange, SOCKET_CONNECT
from nodeflow.examples.TextPipelineExample import build_example_graph, main as run_example
from nodeflow.server.config import ServerSettings, load_settings
from nodeflow.server.events.socket_server import attach_bus, event_message
from nodeflow.server.routes import graph_routes
from nodeflow.server.routes.graph_routes import ConnectionBody, CreateNodeBody, SetSocketValueBody
from nodeflow.server.state import GraphState, graph_state


def call(coro):
    return asyncio.run(coro)


class TestGraphState:

    def test_seeded_demo(self):
        """The demo graph holds a text pipeline and a control-flow print"""
        state = GraphState()
        types = sorted(node.type for node in state.graph.nodes.values())

        assert types == ["log", "make-text", "print", "start", "upper"]
        assert len(state.graph.connections) == 4

    def test_seeded_demo_runs(self):
        state = GraphState()
        state.graph.run()

        printer = next(n for n in state.graph.nodes.values() if n.type == "print")
        log = next(n for n in state.graph.nodes.values() if n.type == "log")
        assert log.messages == ["HELLO"]
        assert printer.messages == ["HELLO"]

    def test_reset_without_demo(self):
        state = GraphState()
        state.reset(seed_demo=False)
        assert state.graph.nodes == {}


class TestEventMessages:

    def setup_method(self):
        self.state = GraphState(seed_demo=False)
        self.graph = self.state.graph

    def test_node_message(self):
        node = self.graph.add_node("upper")
        message = event_message(NODE_ADD, node)

        assert message == {
            "type": "node-add",
            "node": {
                "id": node.id,
                "name": "Upper",
                "type": "upper",
                "isRoot": False,
                "inputs": [node.inputs[0].id],
                "outputs": [node.outputs[0].id],
            },
        }
        json.dumps(message)

    def test_connection_message(self):
        text = self.graph.add_node("make-text")
        upper = self.graph.add_node("upper")
        connection = self.graph.connect_sockets(text.outputs[0].id, upper.inputs[0].id)

        message = event_message(SOCKET_CONNECT, connection)

        assert message["connection"] == {
            "id": connection.id,
            "outputId": text.outputs[0].id,
            "inputId": upper.inputs[0].id,
        }

    def test_property_message(self):
        node = self.graph.add_node("make-text")
        message = event_message(PROPERTY_CHANGE, PropertyChange(node, "text", "x"))

        assert message == {"type": "property-change", "nodeId": node.id, "property": "text", "value": "x"}

    def test_attach_bus_without_loop(self):
        """Outside an event loop events are dropped without breaking the mutation"""
        subscriptions = attach_bus(self.state.bus)
        try:
            assert len(subscriptions) == len(GRAPH_EVENTS)
            node = self.graph.add_node("upper")
            assert self.graph.get_node(node.id) is node
        finally:
            for subscription in subscriptions:
                subscription.unsubscribe()


class TestGraphRoutes:

    def setup_method(self):
        graph_state.reset(seed_demo=False)
        self.graph = graph_state.graph

    def teardown_method(self):
        graph_state.reset(seed_demo=False)

    def test_node_types(self):
        types = call(graph_routes.get_node_types())
        assert {"type": "make-text", "args": ["hello"]} in types
        assert {"type": "upper", "args": []} in types

    def test_create_and_delete_node(self):
        created = call(graph_routes.create_node(CreateNodeBody(type="upper")))

        assert created["type"] == "upper"
        assert self.graph.get_node(created["id"]) is not None

        response = call(graph_routes.delete_node(created["id"]))
        assert response.status_code == 204
        assert self.graph.get_node(created["id"]) is None

    def test_create_unknown_type(self):
        with pytest.raises(HTTPException) as exc_info:
            call(graph_routes.create_node(CreateNodeBody(type="nope")))
        assert exc_info.value.status_code == 404

    def test_delete_unknown_node(self):
        with pytest.raises(HTTPException) as exc_info:
            call(graph_routes.delete_node("missing"))
        assert exc_info.value.status_code == 404

    def test_connect_validate_disconnect(self):
        text = self.graph.add_node("make-text")
        upper = self.graph.add_node("upper")
        start = self.graph.add_node("start")
        body = ConnectionBody(outputId=text.outputs[0].id, inputId=upper.inputs[0].id)

        assert call(graph_routes.validate_connection(body)) == {"valid": True}
        bad = ConnectionBody(outputId=start.outputs[0].id, inputId=upper.inputs[0].id)
        assert call(graph_routes.validate_connection(bad)) == {"valid": False}

        connection = call(graph_routes.connect_sockets(body))
        assert connection["outputId"] == text.outputs[0].id
        assert len(self.graph.connections) == 1

        with pytest.raises(HTTPException) as exc_info:
            call(graph_routes.connect_sockets(bad))
        assert exc_info.value.status_code == 409

        call(graph_routes.disconnect_sockets(connection["id"]))
        assert self.graph.connections == []

        with pytest.raises(HTTPException) as exc_info:
            call(graph_routes.disconnect_sockets(connection["id"]))
        assert exc_info.value.status_code == 404

    def test_set_socket_value(self):
        text = self.graph.add_node("make-text")

        call(graph_routes.set_socket_value(text.inputs[0].id, SetSocketValueBody(value="typed")))
        assert text.properties["text"] == "typed"

        with pytest.raises(HTTPException) as exc_info:
            call(graph_routes.set_socket_value(text.outputs[0].id, SetSocketValueBody(value="x")))
        assert exc_info.value.status_code == 400

    def test_get_and_put_graph(self):
        graph_state.reset(seed_demo=True)
        document = call(graph_routes.get_graph())

        graph_state.reset(seed_demo=False)
        loaded = call(graph_routes.load_graph(document))

        assert loaded == document
        assert len(graph_state.graph.nodes) == 5

    def test_put_malformed_graph(self):
        with pytest.raises(HTTPException) as exc_info:
            call(graph_routes.load_graph({"id": "g"}))
        assert exc_info.value.status_code == 400

    def test_run(self):
        graph_state.reset(seed_demo=True)
        result = call(graph_routes.run_graph())

        assert result["status"] == "ok"
        assert len(result["order"]) == 5


class TestConfig:

    def test_defaults(self):
        settings = load_settings({})
        assert settings == ServerSettings()
        assert settings.port == 3001
        assert settings.cors_origins == ["*"]

    def test_environment_values(self):
        settings = load_settings({
            "NODEFLOW_HOST": "127.0.0.1",
            "NODEFLOW_PORT": "8080",
            "NODEFLOW_RELOAD": "yes",
            "NODEFLOW_LOG_LEVEL": "debug",
            "NODEFLOW_CORS_ORIGINS": "http://a.test, http://b.test",
            "NODEFLOW_SEED_DEMO": "0",
        })

        assert settings.host == "127.0.0.1"
        assert settings.port == 8080
        assert settings.reload is True
        assert settings.log_level == "DEBUG"
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
        assert settings.seed_demo is False

    def test_bad_log_level(self):
        with pytest.raises(ValueError):
            load_settings({"NODEFLOW_LOG_LEVEL": "LOUD"})


class TestExample:

    def test_build_example_graph(self):
        graph, log = build_example_graph()
        graph.run()
        assert log.messages == ["HI"]

    def test_main_saves_document(self, tmp_path, caplog):
        output = tmp_path / "pipeline.json"

        with caplog.at_level(logging.INFO):
            graph = run_example(str(output))

        saved = json.loads(output.read_text(encoding="utf-8"))
        assert saved == graph.serialize()
        assert "['HI']" in caplog.text

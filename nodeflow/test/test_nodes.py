import pytest

from nodeflow.core.Connection import Connection
from nodeflow.core.Errors import InvalidOperationError
from nodeflow.core.Node import Node
from nodeflow.core.Socket import Socket
from nodeflow.core.Types import SocketType


class PassNode(Node):
    def __init__(self, name="Pass"):
        super().__init__(name)
        self.add_input(SocketType.TEXT, "value", "In")
        self.add_output(SocketType.TEXT, "value", "Out", allow_multiple_connections=True)

    def run(self):
        self.set_output_property(0, self.get_input_property(0))


def wire(output: Socket, input: Socket) -> Connection:
    connection = Connection(output, input)
    connection.attach()
    return connection


class TestSocketType:

    def test_parse_builtin_any_case(self):
        assert SocketType.parse("text") is SocketType.TEXT
        assert SocketType.parse("PRODUCE") is SocketType.PRODUCE
        assert SocketType.parse("Consume") is SocketType.CONSUME

    def test_parse_custom_tag(self):
        """Unknown tags are kept as caller-defined string types"""
        assert SocketType.parse("Number") == "Number"
        assert SocketType.tag("Number") == "Number"
        assert SocketType.tag(SocketType.TEXT) == "Text"


class TestSocket:

    def setup_method(self):
        self.node = PassNode()

    def test_node_builds_sockets(self):
        """add_input / add_output create owned sockets with the right direction"""
        input, output = self.node.inputs[0], self.node.outputs[0]

        assert input.node is self.node and output.node is self.node
        assert input.isInput() and not input.isOutput()
        assert output.isOutput() and not output.isInput()
        assert input.type is SocketType.TEXT
        assert output.allow_multiple_connections is True
        assert input.allow_multiple_connections is False
        assert input.editable is True
        assert self.node.sockets() == [input, output]

    def test_socket_ids_are_unique(self):
        other = PassNode()
        ids = {s.id for s in self.node.sockets()} | {s.id for s in other.sockets()}
        assert len(ids) == 4
        assert self.node.id != other.id

    def test_explicit_socket_id(self):
        socket = Socket("Number", "n", "N", self.node, socket_id="sock-1")
        assert socket.id == "sock-1"
        assert socket.type == "Number"

    def test_empty_ids_are_kept(self):
        socket = Socket(SocketType.TEXT, "t", "T", self.node, socket_id="")
        connection = Connection(self.node.outputs[0], PassNode().inputs[0], "")

        assert socket.id == ""
        assert connection.id == ""

    def test_get_value_reads_owner_property(self):
        self.node.properties["value"] = 3
        assert self.node.inputs[0].get_value() == 3

    def test_connection_attach_detach(self):
        """Attaching registers the connection on both ends, detaching removes it"""
        downstream = PassNode("Down")
        connection = wire(self.node.outputs[0], downstream.inputs[0])

        assert connection.isAttached()
        assert self.node.outputs[0].isConnected()
        assert downstream.inputs[0].connections == [connection]

        connection.detach()

        assert not connection.isAttached()
        assert not self.node.outputs[0].isConnected()
        assert not downstream.inputs[0].isConnected()

    def test_attach_twice_keeps_one_entry(self):
        downstream = PassNode("Down")
        connection = wire(self.node.outputs[0], downstream.inputs[0])
        connection.attach()

        assert downstream.inputs[0].connections == [connection]


class TestNodeProperties:

    def setup_method(self):
        self.source = PassNode("Source")
        self.target_a = PassNode("A")
        self.target_b = PassNode("B")

    def test_get_input_property(self):
        """Reads the bag under the input socket's property key"""
        assert self.source.get_input_property(0) is None
        self.source.properties["value"] = "x"
        assert self.source.get_input_property(0) == "x"

    def test_set_output_property_pushes_downstream(self):
        """The value lands in every connected node's bag under the input's key"""
        wire(self.source.outputs[0], self.target_a.inputs[0])
        wire(self.source.outputs[0], self.target_b.inputs[0])

        self.source.set_output_property(0, 42)

        assert self.target_a.properties["value"] == 42
        assert self.target_b.properties["value"] == 42
        # the writer's own bag is untouched
        assert "value" not in self.source.properties

    def test_set_output_property_unconnected(self):
        """Writing to an unconnected output changes nothing"""
        self.source.set_output_property(0, 42)
        assert self.source.properties == {}

    def test_input_index_out_of_range(self):
        with pytest.raises(InvalidOperationError):
            self.source.get_input_property(1)
        with pytest.raises(InvalidOperationError):
            self.source.get_input_property(-1)

    def test_output_index_out_of_range(self):
        with pytest.raises(InvalidOperationError):
            self.source.set_output_property(5, "x")

    def test_node_is_abstract(self):
        with pytest.raises(TypeError):
            Node("bare")

from mqbridge.hostport import HostPort


def test_host_port():
    hp = HostPort(host="localhost", port=4222)
    assert str(hp) == "localhost:4222"


def test_host_port_empty_host():
    assert str(HostPort(port=8080)) == ":8080"


def test_host_port_ipv6_is_bracketed():
    assert str(HostPort(host="::1", port=4222)) == "[::1]:4222"


def test_host_port_equality():
    assert HostPort("localhost", 9090) == HostPort(host="localhost", port=9090)
    assert HostPort("localhost", 9090) != HostPort("localhost", 9091)
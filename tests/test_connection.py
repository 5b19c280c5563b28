from io import StringIO
from unittest.mock import MagicMock, patch

import paramiko
import pytest

from nvsync.connection import Connection, LocalConnection
from nvsync.messages import ReConnectFailed


@pytest.fixture
def mock_ssh_client(monkeypatch):
    """Fixture to mock paramiko.SSHClient within the connection module."""
    mock_client = MagicMock()
    monkeypatch.setattr("nvsync.connection.SSHClient", lambda: mock_client)

    mock_transport = MagicMock()
    mock_transport.is_active.return_value = True
    mock_transport.get_log_channel.return_value = "paramiko.transport"
    mock_client.get_transport.return_value = mock_transport

    return mock_client


@pytest.fixture
def mock_ssh_config(monkeypatch):
    """Fixture to mock paramiko.SSHConfig within the connection module."""
    mock_config = MagicMock()
    monkeypatch.setattr("nvsync.connection.SSHConfig", lambda: mock_config)
    mock_config.lookup.return_value = {}
    return mock_config


@pytest.fixture
def mock_path(monkeypatch):
    """Fixture to mock pathlib.Path."""
    mock_path_instance = MagicMock()
    string_io = StringIO("")
    mock_path_instance.expanduser.return_value.open.return_value.__enter__.return_value = string_io
    monkeypatch.setattr("nvsync.connection.Path", lambda path: mock_path_instance)
    return mock_path_instance


def test_connection_init_success(mock_ssh_client, mock_ssh_config, mock_path):
    conn = Connection("pve", 22)

    mock_ssh_client.load_system_host_keys.assert_called_once()
    mock_ssh_client.set_missing_host_key_policy.assert_called_once()
    mock_ssh_client.connect.assert_called_once_with(
        hostname="pve", port=22, username="root", key_filename=None, sock=None
    )
    assert conn.hostname == "pve"
    assert conn.port == 22


def test_connection_invalid_port(mock_ssh_client, mock_ssh_config, mock_path):
    assert Connection("pve", "ssh").port == 22


def test_connection_ssh_config(mock_ssh_client, mock_ssh_config, mock_path):
    mock_ssh_config.lookup.return_value = {
        "hostname": "10.0.0.2",
        "port": "2222",
        "user": "admin",
        "identityfile": ["~/.ssh/pve"],
    }
    Connection("pve")

    mock_ssh_client.connect.assert_called_once_with(
        hostname="10.0.0.2",
        port=2222,
        username="admin",
        key_filename=["~/.ssh/pve"],
        sock=None,
    )


def test_connection_init_auth_fallback(mock_ssh_client, mock_ssh_config, mock_path):
    """Test password fallback authentication."""
    mock_ssh_client.connect.side_effect = [
        paramiko.AuthenticationException,
        None,
    ]
    with patch("getpass.getpass", return_value="password") as mock_getpass:
        Connection("pve", 22)

        assert mock_getpass.call_count == 1
        assert mock_ssh_client.connect.call_count == 2
        mock_ssh_client.connect.assert_any_call(
            hostname="pve",
            port=22,
            username="root",
            password="password",
            sock=None,
        )


def test_connection_ssh_exception(mock_ssh_client, mock_ssh_config, mock_path):
    mock_ssh_client.connect.side_effect = paramiko.SSHException("no route")
    with pytest.raises(paramiko.SSHException):
        Connection("pve", 22)


def test_run_command_success(mock_ssh_client, mock_ssh_config, mock_path):
    """Test successful command execution with the 'run' method."""
    conn = Connection("pve", 22)

    mock_session = MagicMock()
    mock_ssh_client.get_transport.return_value.open_session.return_value = mock_session

    mock_session.recv_exit_status.return_value = 0
    mock_session.recv.side_effect = [b"output", b""]
    mock_session.recv_stderr.side_effect = [b"error", b""]
    mock_session.recv_ready.side_effect = [True, False]
    mock_session.recv_stderr_ready.side_effect = [True, False]

    with patch("select.select", return_value=([mock_session], [], [])):
        exit_code = conn.run(["ls", "-l", "/etc/apt/sources.list.d"])

    assert exit_code == 0
    assert conn.stdout == "output"
    assert conn.stderr == "error"
    assert conn.stdin == "ls -l /etc/apt/sources.list.d"
    mock_session.exec_command.assert_called_once_with("ls -l /etc/apt/sources.list.d")


def test_run_command_quotes_arguments(mock_ssh_client, mock_ssh_config, mock_path):
    conn = Connection("pve", 22)

    mock_session = MagicMock()
    mock_ssh_client.get_transport.return_value.open_session.return_value = mock_session
    mock_session.recv_exit_status.return_value = 0
    mock_session.recv_ready.return_value = False
    mock_session.recv_stderr_ready.return_value = False

    with patch("select.select", return_value=([mock_session], [], [])):
        conn.run(["apt-get", "install", "-y", "libnvidia-gl=590.48*"], stdin="data")

    mock_session.exec_command.assert_called_once_with(
        "apt-get install -y 'libnvidia-gl=590.48*'"
    )
    mock_session.sendall.assert_called_once_with(b"data")
    mock_session.shutdown_write.assert_called_once()


def test_run_command_reconnect_fails(mock_ssh_client, mock_ssh_config, mock_path, monkeypatch):
    conn = Connection("pve", 22)
    mock_ssh_client.get_transport.return_value.open_session.side_effect = paramiko.SSHException
    monkeypatch.setattr(Connection, "reconnect", lambda self: None)

    with pytest.raises(ReConnectFailed):
        conn.run(["true"])


def test_put(mock_ssh_client, mock_ssh_config, mock_path, tmp_path):
    conn = Connection("pve", 22)
    sftp = mock_ssh_client.open_sftp.return_value

    conn.put(tmp_path / "cuda-keyring.deb", "/tmp/cuda-keyring.deb")

    sftp.put.assert_called_once_with(str(tmp_path / "cuda-keyring.deb"), "/tmp/cuda-keyring.deb")
    sftp.close.assert_called_once()


def test_is_active_and_close(mock_ssh_client, mock_ssh_config, mock_path):
    conn = Connection("pve", 22)
    assert conn.is_active()
    conn.close()
    mock_ssh_client.close.assert_called_once()


def test_local_run():
    conn = LocalConnection()
    assert conn.run(["echo", "hello world"]) == 0
    assert conn.stdout == "hello world\n"
    assert conn.stdin == "echo 'hello world'"


def test_local_run_stdin():
    conn = LocalConnection()
    assert conn.run(["cat"], stdin="Pin-Priority: 1001\n") == 0
    assert conn.stdout == "Pin-Priority: 1001\n"


def test_local_run_failure():
    conn = LocalConnection()
    assert conn.run(["false"]) == 1


def test_local_run_missing_command():
    conn = LocalConnection()
    assert conn.run(["nvsync-no-such-command"]) == 127
    assert "nvsync-no-such-command" in conn.stderr


def test_local_put(tmp_path):
    source = tmp_path / "a"
    source.write_text("payload")
    conn = LocalConnection()

    conn.put(source, tmp_path / "b")
    conn.put(source, source)

    assert (tmp_path / "b").read_text() == "payload"
    assert conn.is_active()

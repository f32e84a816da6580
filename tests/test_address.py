"""Tests for bridge.address -- deterministic socket path derivation."""

import re

from hypothesis import assume, given
from hypothesis import strategies as st

from bridge import config
from bridge.address import cwd_digest, derive_socket_path

_PATH_RE = re.compile(r"^/tmp/pi-bridge-[0-9a-f]{16}\.sock$")


class TestDeriveSocketPath:

    def test_known_digest(self):
        assert cwd_digest("/home/user/project") == "9dad1e4e08b0b11c"

    def test_known_path(self):
        assert derive_socket_path("/home/user/project", "/tmp") == "/tmp/pi-bridge-9dad1e4e08b0b11c.sock"

    def test_different_directories_differ(self):
        assert derive_socket_path("/home/user/other", "/tmp") == "/tmp/pi-bridge-05fbd965be387584.sock"
        assert derive_socket_path("/home/user/other", "/tmp") != derive_socket_path("/home/user/project", "/tmp")

    def test_uses_configured_socket_dir_by_default(self, monkeypatch):
        monkeypatch.setattr(config, "SOCKET_DIR", "/run/bridges")
        assert derive_socket_path("/home/user/project") == "/run/bridges/pi-bridge-9dad1e4e08b0b11c.sock"

    def test_trailing_slash_is_a_different_identity(self):
        """The identity string is hashed as given, without normalization."""
        assert derive_socket_path("/srv/app", "/tmp") != derive_socket_path("/srv/app/", "/tmp")

    @given(cwd=st.text())
    def test_deterministic_and_well_formed(self, cwd):
        path = derive_socket_path(cwd, "/tmp")
        assert path == derive_socket_path(cwd, "/tmp")
        assert _PATH_RE.match(path)

    @given(a=st.text(), b=st.text())
    def test_distinct_inputs_give_distinct_paths(self, a, b):
        assume(a != b)
        assert derive_socket_path(a, "/tmp") != derive_socket_path(b, "/tmp")

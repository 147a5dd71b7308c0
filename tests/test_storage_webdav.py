"""Tests for the WebDAV Resource Store against an in-memory server."""
import httpx
import pytest

from reelshelf.core.errors import BackendError, ConflictError, NotFoundError
from reelshelf.storage.webdav import WebDAVResourceStore

from .fixtures import FakeDavServer


@pytest.fixture
def server() -> FakeDavServer:
    server = FakeDavServer(root="/dav")
    server.add_file("/dav/videos/food/a.mp4", size=100)
    server.add_file("/dav/videos/food/b.mp4", size=200)
    server.add_file("/dav/videos/food/notes.txt", size=5)
    server.add_file("/dav/videos/food/.DS_Store", size=5)
    server.add_file("/dav/videos/food/published/c.mp4", size=300)
    server.add_file("/dav/videos/food/my clip.mp4", size=50)
    return server


@pytest.fixture
def dav(server):
    store = WebDAVResourceStore("http://dav.test/dav", transport=server.transport())
    yield store
    store.close()


class TestWebDAVRead:
    """Tests for PROPFIND based reads."""

    def test_list(self, dav):
        entries = dav.list("/videos/food")
        assert [e.name for e in entries] == ["published", "a.mp4", "b.mp4", "my clip.mp4"]
        assert entries[0].is_folder
        assert entries[0].path == "/videos/food/published"
        assert entries[1].size == 100
        assert entries[1].modified_time is not None

    def test_list_decodes_names(self, dav):
        """Test percent-encoded hrefs come back as plain names."""
        entry = [e for e in dav.list("/videos/food") if e.name == "my clip.mp4"][0]
        assert entry.path == "/videos/food/my clip.mp4"

    def test_list_missing(self, dav):
        with pytest.raises(NotFoundError):
            dav.list("/videos/nothing")

    def test_get_info(self, dav):
        info = dav.get_info("/videos/food/published/c.mp4")
        assert info.is_video
        assert info.size == 300

    def test_check_connection(self, dav):
        assert dav.check_connection() is True

    def test_base_path(self, server):
        store = WebDAVResourceStore("http://dav.test/dav", base_path="/videos", transport=server.transport())
        assert [e.name for e in store.list("/food")][:1] == ["published"]
        assert store.get_info("/food/a.mp4").path == "/food/a.mp4"

    def test_server_error(self, dav, server):
        server.fail("PROPFIND", "/dav/videos/food", 503)
        with pytest.raises(BackendError):
            dav.list("/videos/food")

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        store = WebDAVResourceStore("http://dav.test/dav", transport=httpx.MockTransport(handler))
        with pytest.raises(BackendError, match="timed out"):
            store.get_info("/videos")
        assert store.check_connection() is False


class TestWebDAVWrite:
    """Tests for MKCOL and MOVE."""

    def test_create_folder_recursive(self, dav, server):
        dav.create_folder("/videos/drinks/published")
        assert "/dav/videos/drinks" in server.folders
        assert "/dav/videos/drinks/published" in server.folders

    def test_move_into_new_folder(self, dav, server):
        dav.move("/videos/food/a.mp4", "/videos/food/archive2/a.mp4")
        assert "/dav/videos/food/archive2/a.mp4" in server.files
        assert "/dav/videos/food/a.mp4" not in server.files

    def test_move_sends_no_overwrite(self, dav, server):
        seen = []
        original = server.handle

        def spy(request):
            if request.method == "MOVE":
                seen.append((request.headers["Overwrite"], request.headers["Destination"]))
            return original(request)

        store = WebDAVResourceStore("http://dav.test/dav", transport=httpx.MockTransport(spy))
        store.move("/videos/food/b.mp4", "/videos/food/published/b.mp4")
        assert seen == [("F", "http://dav.test/dav/videos/food/published/b.mp4")]

    def test_move_conflict(self, dav, server):
        server.add_file("/dav/videos/food/published/a.mp4")
        with pytest.raises(ConflictError):
            dav.move("/videos/food/a.mp4", "/videos/food/published/a.mp4")
        assert "/dav/videos/food/a.mp4" in server.files

    def test_move_precondition_failed(self, dav, server):
        """Test a 412 answer to MOVE is a conflict."""
        server.fail("MOVE", "/dav/videos/food/a.mp4", 412)
        with pytest.raises(ConflictError):
            dav.move("/videos/food/a.mp4", "/videos/food/published/a.mp4")

    def test_move_missing_source(self, dav):
        with pytest.raises(NotFoundError):
            dav.move("/videos/food/zzz.mp4", "/videos/food/published/zzz.mp4")

    def test_rename(self, dav, server):
        assert dav.rename("/videos/food/b.mp4", "bee.mp4") == "/videos/food/bee.mp4"
        assert "/dav/videos/food/bee.mp4" in server.files

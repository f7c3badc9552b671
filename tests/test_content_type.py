"""Tests for content-type detection."""

from pathlib import Path
from unittest.mock import Mock, patch

from wagon.content_type import (
    ContentTypeDetector,
    ContentTypeProbe,
    MimetypesDetector,
    SuffixMapDetector,
    discover_detectors,
)


class _Fixed:
    def __init__(self, value):
        self.value = value

    def probe_content_type(self, path):
        return self.value


class _Broken:
    def probe_content_type(self, path):
        raise OSError("unreadable")


class TestContentTypeProbe:
    """Tests for the detector chain."""

    def test_first_answer_wins(self):
        probe = ContentTypeProbe([_Fixed(None), _Fixed("text/x-a"), _Fixed("text/x-b")])
        assert probe.probe("file.bin") == "text/x-a"

    def test_failing_detector_is_skipped(self):
        probe = ContentTypeProbe([_Broken(), _Fixed("application/x-ok")])
        assert probe.probe(Path("file.bin")) == "application/x-ok"

    def test_empty_chain(self):
        assert ContentTypeProbe([]).probe("file.json") is None

    def test_all_detectors_unsure(self):
        assert ContentTypeProbe([_Fixed(None), _Broken()]).probe("x") is None


class TestDetectors:
    """Tests for the built-in detectors."""

    def test_mimetypes_detector(self):
        detector = MimetypesDetector()
        assert detector.probe_content_type(Path("/tmp/app.json")) == "application/json"
        assert detector.probe_content_type(Path("/tmp/no-extension")) is None

    def test_suffix_map_prefers_longest_suffix(self):
        detector = SuffixMapDetector(
            {".gz": "application/gzip", "tar.gz": "application/x-gtar", ".POM": "text/xml"}
        )
        assert detector.probe_content_type(Path("a.tar.gz")) == "application/x-gtar"
        assert detector.probe_content_type(Path("a.gz")) == "application/gzip"
        assert detector.probe_content_type(Path("app-1.0.pom")) == "text/xml"
        assert detector.probe_content_type(Path("a.jar")) is None

    def test_protocol(self):
        assert isinstance(MimetypesDetector(), ContentTypeDetector)
        assert isinstance(SuffixMapDetector({}), ContentTypeDetector)


class TestDiscoverDetectors:
    """Tests for entry-point discovery."""

    def test_falls_back_to_mimetypes(self):
        with patch("wagon.content_type.entry_points", return_value=[]):
            detectors = discover_detectors()
        assert len(detectors) == 1
        assert isinstance(detectors[0], MimetypesDetector)

    def test_loads_entry_points_in_name_order(self):
        second = Mock()
        second.name = "b-detector"
        second.load.return_value = lambda: _Fixed("text/x-b")
        first = Mock()
        first.name = "a-detector"
        first.load.return_value = lambda: _Fixed("text/x-a")

        with patch("wagon.content_type.entry_points", return_value=[second, first]):
            detectors = discover_detectors()

        assert [d.value for d in detectors] == ["text/x-a", "text/x-b"]

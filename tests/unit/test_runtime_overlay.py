"""Unit tests for the live overlay controller."""

import asyncio
import logging
from unittest.mock import MagicMock

import pytest

from see_the_code.config import OverlayConfig
from see_the_code.models import CodeMap, SourceLocation
from see_the_code.runtime.document import class_list, parse_document
from see_the_code.runtime.editor import EditorLauncher
from see_the_code.runtime.matcher import MatchTier
from see_the_code.runtime.overlay import MarkerState, MutationRecord, OverlayController
from see_the_code.storage import save_code_map

NS = "see-the-code"


def _count(document, role: str) -> int:
    return len(document.select(f".{NS}-{role}"))


@pytest.fixture()
def code_map_path(tmp_path, sample_code_map):
    return save_code_map(sample_code_map, tmp_path / "code-map.json")


@pytest.fixture()
def launcher():
    return MagicMock(spec=EditorLauncher)


@pytest.fixture()
def make_controller(code_map_path, launcher):
    def _make(document, **overrides):
        config = OverlayConfig(code_map_url=str(code_map_path), **overrides)
        return OverlayController(document, config, launcher=launcher)

    return _make


class TestInit:
    """Test loading and the first pass."""

    @pytest.mark.asyncio
    async def test_matches_sample_page(self, make_controller, sample_document):
        controller = make_controller(sample_document)

        assert await controller.init()

        stats = controller.get_stats()
        assert stats["loaded"]
        assert stats["totalSelectors"] == 7
        assert stats["matchedElements"] == 3
        assert stats["unmatchedElements"] == 2  # body and the unrelated span
        assert stats["tiers"] == {"structural": 2, "text": 1}
        assert _count(sample_document, "badge") == 3
        assert _count(sample_document, "element-wrapper") == 3

    @pytest.mark.asyncio
    async def test_styles_are_injected_once(self, make_controller, sample_document):
        controller = make_controller(sample_document)
        await controller.init()
        controller._inject_styles()

        styles = sample_document.find_all("style", id=f"{NS}-styles")
        assert len(styles) == 1
        assert styles[0].parent.name == "head"

    @pytest.mark.asyncio
    async def test_marker_content(self, make_controller, sample_document):
        controller = make_controller(sample_document)
        await controller.init()

        button = sample_document.find("button")
        entry = controller.find_match(button)

        assert entry.match.tier is MatchTier.STRUCTURAL
        assert entry.wrapper is button.parent
        marker = entry.marker.tag
        assert marker.parent is entry.wrapper
        assert marker.find(class_=f"{NS}-file-info").get_text() == (
            "src/components/Button.tsx:5"
        )
        assert marker.get(f"data-{NS}-line") == "5"


class TestLoadFailure:
    """Test the inert state after a failed load."""

    @pytest.mark.asyncio
    async def test_missing_code_map_turns_inert(self, tmp_path, launcher, caplog):
        document = parse_document("<body><div class='card'>x</div></body>")
        config = OverlayConfig(code_map_url=str(tmp_path / "missing.json"))
        controller = OverlayController(document, config, launcher=launcher)
        before = str(document)

        with caplog.at_level(logging.WARNING, logger="see_the_code"):
            assert not await controller.init()

        assert controller.inert
        assert caplog.text.count("Failed to load code map") == 1
        assert str(document) == before

    @pytest.mark.asyncio
    async def test_inert_operations_are_no_ops(self, tmp_path, launcher):
        document = parse_document("<body><div class='card'>x</div></body>")
        config = OverlayConfig(code_map_url=str(tmp_path / "missing.json"))
        controller = OverlayController(document, config, launcher=launcher)
        await controller.init()
        before = str(document)

        assert controller.process_document() == 0
        assert not controller.notify_mutations([MutationRecord(added_nodes=["x"])])
        controller.set_debug(True)
        controller.set_interaction_mode("always")
        controller.set_interaction_mode("sideways")
        controller.set_workspace_root("/w")
        assert not await controller.reload()
        assert not await controller.set_code_map_url(str(tmp_path / "other.json"))

        assert str(document) == before
        assert controller.get_stats()["inert"]
        assert controller.config.interaction_mode == "click"

    @pytest.mark.asyncio
    async def test_invalid_json_turns_inert(self, tmp_path, launcher):
        bad = tmp_path / "code-map.json"
        bad.write_text("{oops")
        controller = OverlayController(
            parse_document("<p>x</p>"), OverlayConfig(code_map_url=str(bad)), launcher=launcher
        )
        assert not await controller.load()
        assert controller.inert

    @pytest.mark.asyncio
    async def test_non_utf8_code_map_turns_inert(self, tmp_path, launcher):
        bad = tmp_path / "code-map.json"
        bad.write_bytes(b'{"\xff\xfe": {"file": "a.tsx", "line": 1}}')
        document = parse_document("<body><div class='card'>x</div></body>")
        controller = OverlayController(
            document, OverlayConfig(code_map_url=str(bad)), launcher=launcher
        )

        assert not await controller.init()
        assert controller.inert
        assert not document.find("style")


class TestRegistry:
    """Test idempotent marker attachment."""

    @pytest.mark.asyncio
    async def test_repeat_passes_add_no_markers(self, make_controller, sample_document):
        controller = make_controller(sample_document)
        await controller.init()

        assert controller.process_document() == 0
        assert controller.process_document() == 0
        assert _count(sample_document, "badge") == 3
        assert _count(sample_document, "element-wrapper") == 3

    @pytest.mark.asyncio
    async def test_existing_wrapper_is_reused(self, make_controller):
        document = parse_document(
            f'<body><div class="{NS}-element-wrapper" style="position: relative">'
            '<button class="btn">Go</button></div></body>'
        )
        controller = make_controller(document)
        await controller.init()

        assert _count(document, "element-wrapper") == 1
        assert _count(document, "badge") == 1

    @pytest.mark.asyncio
    async def test_small_elements_are_skipped(self, make_controller):
        document = parse_document(
            "<body>"
            f'<button class="btn" data-{NS}-box="0,0,4,30">a</button>'
            f'<div class="card" data-{NS}-box="0,0,200,30">b</div>'
            "</body>"
        )
        controller = make_controller(document)
        await controller.init()

        assert controller.find_match(document.find("button")) is None
        assert controller.find_match(document.find("div", class_="card")) is not None


class TestMarkerStateMachine:
    """Test collapsed/expanded transitions."""

    @pytest.mark.asyncio
    async def test_toggle_and_open(self, make_controller, sample_document, launcher):
        controller = make_controller(sample_document)
        await controller.init()
        marker = controller.find_match(sample_document.find("button")).marker

        assert marker.state is MarkerState.COLLAPSED

        assert marker.activate() is MarkerState.EXPANDED
        assert f"{NS}-expanded" in class_list(marker.tag)
        launcher.open.assert_called_once_with("src/components/Button.tsx", 5)

        assert marker.activate() is MarkerState.COLLAPSED
        assert f"{NS}-expanded" not in class_list(marker.tag)
        launcher.open.assert_called_once()


class TestMutations:
    """Test debounced reprocessing."""

    @pytest.mark.asyncio
    async def test_burst_triggers_single_pass(self, make_controller, sample_document):
        controller = make_controller(sample_document, debounce_ms=50)
        await controller.init()

        new_button = sample_document.new_tag("button", attrs={"class": "btn"})
        new_button.string = "Later"
        sample_document.body.append(new_button)

        for _ in range(3):
            assert controller.notify_mutations([MutationRecord(added_nodes=[new_button])])
        await asyncio.sleep(0.2)

        stats = controller.get_stats()
        assert stats["passes"] == 2
        assert stats["reprocess"]["fired"] == 1
        assert controller.find_match(new_button) is not None

    @pytest.mark.asyncio
    async def test_removals_do_not_schedule(self, make_controller, sample_document):
        controller = make_controller(sample_document, debounce_ms=50)
        await controller.init()

        assert not controller.notify_mutations([MutationRecord(removed_nodes=["x"])])
        assert not controller.get_stats()["reprocess"]["pending"]

    @pytest.mark.asyncio
    async def test_close_cancels_pending_pass(self, make_controller, sample_document):
        controller = make_controller(sample_document, debounce_ms=50)
        await controller.init()

        controller.notify_mutations([MutationRecord(added_nodes=["x"])])
        controller.close()
        await asyncio.sleep(0.1)

        assert controller.get_stats()["passes"] == 1


class TestPublicOperations:
    """Test debug, mode, workspace and reload operations."""

    @pytest.mark.asyncio
    async def test_set_debug(self, make_controller, sample_document):
        controller = make_controller(sample_document)
        await controller.init()
        span = sample_document.find("span")

        controller.set_debug(True)
        assert f"{NS}-debug-unmatched" in class_list(span)

        controller.set_debug(False)
        assert f"{NS}-debug-unmatched" not in class_list(span)

    @pytest.mark.asyncio
    async def test_debug_from_config(self, make_controller, sample_document):
        controller = make_controller(sample_document, enable_debug=True)
        await controller.init()
        assert f"{NS}-debug-unmatched" in class_list(sample_document.find("span"))

    @pytest.mark.asyncio
    async def test_set_interaction_mode(self, make_controller, sample_document):
        controller = make_controller(sample_document)
        await controller.init()

        controller.set_interaction_mode("hover")
        assert _count(sample_document, "hover-mode") == 3

        controller.set_interaction_mode("always")
        assert _count(sample_document, "hover-mode") == 0
        assert _count(sample_document, "always-visible") == 3

    @pytest.mark.asyncio
    async def test_invalid_interaction_mode_is_ignored(
        self, make_controller, sample_document, caplog
    ):
        controller = make_controller(sample_document, interaction_mode="hover")
        await controller.init()

        with caplog.at_level(logging.WARNING, logger="see_the_code"):
            controller.set_interaction_mode("sideways")

        assert "Invalid interaction mode 'sideways'" in caplog.text
        assert controller.config.interaction_mode == "hover"
        assert _count(sample_document, "hover-mode") == 3

    def test_set_workspace_root(self, make_controller, sample_document, launcher):
        controller = make_controller(sample_document)
        controller.set_workspace_root("/home/dev/app")
        assert launcher.workspace_root == "/home/dev/app"
        assert controller.config.workspace_root == "/home/dev/app"

    @pytest.mark.asyncio
    async def test_reload_rebuilds_annotations(self, make_controller, sample_document):
        controller = make_controller(sample_document)
        await controller.init()

        assert await controller.reload()

        assert _count(sample_document, "badge") == 3
        assert _count(sample_document, "element-wrapper") == 3
        assert controller.get_stats()["matchedElements"] == 3

    @pytest.mark.asyncio
    async def test_clear_restores_document(self, make_controller, sample_document):
        controller = make_controller(sample_document)
        await controller.init()

        controller.clear()

        assert _count(sample_document, "badge") == 0
        assert _count(sample_document, "element-wrapper") == 0
        assert sample_document.find("button").parent.name == "div"

    @pytest.mark.asyncio
    async def test_set_code_map_url(self, make_controller, sample_document, tmp_path):
        other = save_code_map(
            CodeMap({"span": SourceLocation("src/Other.tsx", 9)}), tmp_path / "other.json"
        )
        controller = make_controller(sample_document)
        await controller.init()

        assert await controller.set_code_map_url(str(other))

        matches = controller.matched_elements
        assert [entry.element.name for entry in matches] == ["span"]
        assert _count(sample_document, "badge") == 1

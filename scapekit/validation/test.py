"""Tests for draft validation and title uniqueness checking."""

import asyncio
import logging

import pytest

from scapekit.document import ScapeDraft, new_draft
from scapekit.schema import TAGLINE_MAX_LENGTH, WidgetType
from scapekit.widget import Widget

from .lib import IssueCode, NameStatus, is_publishable, validate_scape
from .uniqueness import TitleUniquenessChecker


def _with_widget(title: str = "My Scape") -> ScapeDraft:
    return new_draft(title).append(
        Widget(id="w1", type=WidgetType.TEXT, variant="text-small")
    )


def _codes(result) -> set[IssueCode]:
    return {issue.code for issue in result.issues}


class TestValidateScape:
    """Tests for the synchronous validation pass."""

    @pytest.mark.unit
    @pytest.mark.parametrize("title", ["", "   ", "\t\n"])
    def test_empty_title_blocks_save(self, title):
        """A blank title blocks both save and publish."""
        result = validate_scape(_with_widget(title))
        assert not result.can_save_draft
        assert not result.can_publish
        assert IssueCode.EMPTY_TITLE in _codes(result)

    @pytest.mark.unit
    def test_title_without_widgets_saves_only(self):
        """A titled empty draft can be saved but not published."""
        result = validate_scape(new_draft("Title"))
        assert result.can_save_draft
        assert not result.can_publish
        assert result.errors == ["At least one widget is required"]

    @pytest.mark.unit
    def test_title_and_widget_publishes(self):
        """No feature is needed to publish."""
        result = validate_scape(_with_widget())
        assert result.is_valid
        assert result.can_publish
        assert result.errors == []

    @pytest.mark.unit
    def test_featured_without_caption(self):
        """A featured widget needs a caption to publish."""
        result = validate_scape(_with_widget().set_feature("w1"))
        assert result.can_save_draft
        assert not result.can_publish
        assert result.issues[0].code == IssueCode.EMPTY_CAPTION
        assert result.issues[0].widget_id == "w1"

    @pytest.mark.unit
    def test_featured_with_caption(self):
        """A captioned feature publishes."""
        draft = _with_widget().set_feature("w1").set_featured_caption("w1", "Listen")
        assert validate_scape(draft).can_publish

    @pytest.mark.unit
    def test_caption_too_long(self):
        """Captions share the summary-text bound."""
        draft = _with_widget().set_feature("w1").set_featured_caption("w1", "x" * 76)
        assert _codes(validate_scape(draft)) == {IssueCode.CAPTION_TOO_LONG}

    @pytest.mark.unit
    def test_tagline_bound(self):
        """Taglines at the bound pass; one more character fails."""
        ok = _with_widget().set_tagline("t" * TAGLINE_MAX_LENGTH)
        too_long = _with_widget().set_tagline("t" * (TAGLINE_MAX_LENGTH + 1))
        assert validate_scape(ok).can_publish
        result = validate_scape(too_long)
        assert result.can_save_draft
        assert _codes(result) == {IssueCode.TAGLINE_TOO_LONG}

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("title", "code"),
        [("a" * 51, IssueCode.TITLE_TOO_LONG), ("a/b", IssueCode.TITLE_INVALID_CHARS)],
    )
    def test_title_content_rules_block_publish(self, title, code):
        """Overlong or odd titles still save as drafts."""
        result = validate_scape(_with_widget(title))
        assert result.can_save_draft
        assert not result.can_publish
        assert code in _codes(result)

    @pytest.mark.unit
    def test_taken_title_blocks_publish(self):
        """A confirmed duplicate title blocks publish, not save."""
        result = validate_scape(_with_widget(), NameStatus.TAKEN)
        assert result.can_save_draft
        assert not result.can_publish
        assert result.name_is_unique is False

    @pytest.mark.unit
    def test_taken_title_can_be_allowed(self):
        """Uniqueness enforcement can be switched off."""
        result = validate_scape(_with_widget(), NameStatus.TAKEN, require_unique_title=False)
        assert result.can_publish

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (NameStatus.UNKNOWN, None),
            (NameStatus.CHECKING, None),
            (NameStatus.UNIQUE, True),
            (NameStatus.TAKEN, False),
        ],
    )
    def test_name_is_unique(self, status, expected):
        """Pending checks never block and report None."""
        result = validate_scape(_with_widget(), status)
        assert result.name_is_unique is expected
        assert result.can_publish is (status != NameStatus.TAKEN)

    @pytest.mark.unit
    def test_sparse_positions(self):
        """Drifted positions are reported."""
        draft = ScapeDraft(
            title="T",
            widgets=(Widget(id="a", type="text", variant="text-small", position=3),),
        )
        assert IssueCode.POSITIONS_NOT_DENSE in _codes(validate_scape(draft))

    @pytest.mark.unit
    def test_to_dict(self):
        """Results serialise for the tool surface."""
        payload = validate_scape(new_draft("T")).to_dict()
        assert payload["can_save_draft"] is True
        assert payload["issues"][0]["code"] == "no_widgets"
        assert payload["name_is_unique"] is None

    @pytest.mark.unit
    def test_is_publishable(self):
        """Shortcut mirrors can_publish."""
        assert is_publishable(_with_widget())
        assert not is_publishable(new_draft("T"))


class _ScriptedLookup:
    """Title lookup whose answers and timing are controlled by the test."""

    def __init__(self, taken: set[str] | None = None):
        self.taken = taken or set()
        self.calls: list[tuple[str, str, str | None]] = []
        self.gates: dict[str, asyncio.Event] = {}
        self._started: dict[str, asyncio.Event] = {}
        self.fail = False

    def started(self, title: str) -> asyncio.Event:
        return self._started.setdefault(title, asyncio.Event())

    def hold(self, title: str) -> asyncio.Event:
        return self.gates.setdefault(title, asyncio.Event())

    async def __call__(self, title: str, user_id: str, exclude_id: str | None):
        self.calls.append((title, user_id, exclude_id))
        self.started(title).set()
        if title in self.gates:
            await self.gates[title].wait()
        if self.fail:
            raise RuntimeError("store unavailable")
        return "other-scape" if title in self.taken else None


class TestTitleUniquenessChecker:
    """Tests for the debounced uniqueness check."""

    @pytest.mark.asyncio
    async def test_unique_and_taken(self):
        """Lookups settle to UNIQUE or TAKEN."""
        lookup = _ScriptedLookup(taken={"Taken"})
        checker = TitleUniquenessChecker(lookup, "u1", debounce_seconds=0)

        checker.schedule("Free")
        assert checker.status == NameStatus.CHECKING
        await checker.wait()
        assert checker.status == NameStatus.UNIQUE

        checker.schedule("Taken")
        await checker.wait()
        assert checker.status == NameStatus.TAKEN

    @pytest.mark.asyncio
    async def test_debounce_coalesces(self):
        """Rapid typing issues a single lookup for the final title."""
        lookup = _ScriptedLookup()
        checker = TitleUniquenessChecker(lookup, "u1", debounce_seconds=0.05)
        for title in ("S", "Su", "Sum"):
            checker.schedule(title)
        await checker.wait()
        assert lookup.calls == [("Sum", "u1", None)]
        assert checker.status == NameStatus.UNIQUE

    @pytest.mark.asyncio
    async def test_stale_result_discarded(self):
        """A slow lookup for A cannot overwrite B's result."""
        lookup = _ScriptedLookup(taken={"A"})
        gate_a = lookup.hold("A")
        checker = TitleUniquenessChecker(lookup, "u1", debounce_seconds=0)

        checker.schedule("A")
        await asyncio.wait_for(lookup.started("A").wait(), timeout=1)
        checker.schedule("B")
        await asyncio.wait_for(lookup.started("B").wait(), timeout=1)
        gate_a.set()
        await checker.wait()

        assert checker.title == "B"
        assert checker.status == NameStatus.UNIQUE

    @pytest.mark.asyncio
    async def test_slow_current_result_applies(self):
        """B's answer wins even when it arrives after A's."""
        lookup = _ScriptedLookup(taken={"B"})
        gate_b = lookup.hold("B")
        checker = TitleUniquenessChecker(lookup, "u1", debounce_seconds=0)

        checker.schedule("A")
        await asyncio.wait_for(lookup.started("A").wait(), timeout=1)
        checker.schedule("B")
        await asyncio.wait_for(lookup.started("B").wait(), timeout=1)
        assert checker.status == NameStatus.CHECKING
        gate_b.set()
        await checker.wait()

        assert checker.status == NameStatus.TAKEN

    @pytest.mark.asyncio
    async def test_exclude_id_passed(self):
        """The scape being edited is excluded from its own lookup."""
        lookup = _ScriptedLookup()
        checker = TitleUniquenessChecker(lookup, "u1", exclude_id="s1", debounce_seconds=0)
        checker.schedule("Mine")
        await checker.wait()
        checker.set_exclude_id("s2")
        checker.schedule("Mine again")
        await checker.wait()
        assert [call[2] for call in lookup.calls] == ["s1", "s2"]

    @pytest.mark.asyncio
    async def test_failure_on_new_title_is_unknown(self, caplog):
        """A failed lookup never inherits the verdict for an earlier title."""
        lookup = _ScriptedLookup()
        checker = TitleUniquenessChecker(lookup, "u1", debounce_seconds=0)
        checker.schedule("First")
        await checker.wait()
        assert checker.status == NameStatus.UNIQUE

        lookup.fail = True
        with caplog.at_level(logging.WARNING, logger="scapekit.validation.uniqueness"):
            checker.schedule("Second")
            await checker.wait()

        assert checker.status == NameStatus.UNKNOWN
        assert "uniqueness lookup failed" in caplog.text

    @pytest.mark.asyncio
    async def test_failure_on_same_title_keeps_verdict(self):
        """Re-checking an already verified title keeps its verdict on failure."""
        lookup = _ScriptedLookup()
        checker = TitleUniquenessChecker(lookup, "u1", debounce_seconds=0)
        checker.schedule("Same")
        await checker.wait()

        lookup.fail = True
        await checker.check_now("Same")
        assert checker.status == NameStatus.UNIQUE

    @pytest.mark.asyncio
    async def test_new_exclude_id_rechecks_title(self):
        """Setting the stored id re-runs the lookup with the exclusion."""
        lookup = _ScriptedLookup()
        checker = TitleUniquenessChecker(lookup, "u1", debounce_seconds=0)
        checker.schedule("Mine")
        await checker.wait()
        checker.set_exclude_id("s1")
        await checker.wait()
        checker.set_exclude_id("s1")
        await checker.wait()
        assert lookup.calls == [("Mine", "u1", None), ("Mine", "u1", "s1")]

    @pytest.mark.asyncio
    async def test_blank_title_skips_lookup(self):
        """Blank titles reset to UNKNOWN without a lookup."""
        lookup = _ScriptedLookup()
        checker = TitleUniquenessChecker(lookup, "u1", debounce_seconds=0)
        checker.schedule("  ")
        await checker.wait()
        assert checker.status == NameStatus.UNKNOWN
        assert lookup.calls == []

    @pytest.mark.asyncio
    async def test_close_cancels_pending(self):
        """close() drops timers that have not fired."""
        lookup = _ScriptedLookup()
        checker = TitleUniquenessChecker(lookup, "u1", debounce_seconds=10)
        checker.schedule("Never")
        await checker.close()
        assert lookup.calls == []

    @pytest.mark.asyncio
    async def test_check_now(self):
        """check_now skips the debounce and returns the status."""
        lookup = _ScriptedLookup(taken={"Dup"})
        checker = TitleUniquenessChecker(lookup, "u1", debounce_seconds=10)
        assert await checker.check_now("Dup") == NameStatus.TAKEN
        assert lookup.calls == [("Dup", "u1", None)]
        await checker.wait()

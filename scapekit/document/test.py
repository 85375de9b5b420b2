"""Unit tests for the scape document model."""

import pytest
from pydantic import ValidationError

from scapekit.schema import NEW_SCAPE_ID, Channel, Visibility, WidgetType
from scapekit.validation import validate_scape
from scapekit.widget import Widget

from .lib import ScapeDraft, WidgetNotFoundError, new_draft


def _draft(*ids: str, title: str = "My Scape") -> ScapeDraft:
    draft = new_draft(title)
    for wid in ids:
        draft = draft.append(
            Widget(id=wid, type=WidgetType.TEXT, variant="text-small")
        )
    return draft


def _ids(draft: ScapeDraft) -> list[str]:
    return [w.id for w in draft.widgets]


def _positions(draft: ScapeDraft) -> list[int]:
    return [w.position for w in draft.widgets]


class TestDefaults:
    """Tests for a fresh draft."""

    @pytest.mark.unit
    def test_new_draft(self):
        """A new draft is unsaved, empty and public."""
        draft = new_draft()
        assert draft.id == NEW_SCAPE_ID
        assert draft.is_new
        assert draft.is_draft
        assert draft.widgets == ()
        assert draft.visibility == Visibility.PUBLIC
        assert draft.feature_widget_id is None

    @pytest.mark.unit
    def test_frozen(self):
        """Drafts cannot be mutated in place."""
        with pytest.raises(ValidationError):
            new_draft().title = "x"

    @pytest.mark.unit
    def test_rejects_two_features(self):
        """Constructing a draft with two featured widgets fails."""
        with pytest.raises(ValidationError):
            ScapeDraft(
                widgets=(
                    Widget(id="a", type="text", variant="text-small", is_feature=True),
                    Widget(id="b", type="text", variant="text-small", is_feature=True),
                )
            )

    @pytest.mark.unit
    def test_rejects_duplicate_ids(self):
        """Widget ids are unique within a draft."""
        with pytest.raises(ValidationError):
            ScapeDraft(
                widgets=(
                    Widget(id="a", type="text", variant="text-small"),
                    Widget(id="a", type="text", variant="text-small"),
                )
            )


class TestAppendRemove:
    """Tests for adding and removing widgets."""

    @pytest.mark.unit
    def test_append_sets_position(self):
        """Appended widgets take the next position."""
        draft = _draft("A", "B", "C")
        assert _positions(draft) == [0, 1, 2]

    @pytest.mark.unit
    def test_append_duplicate_id(self):
        """The same widget cannot be appended twice."""
        draft = _draft("A")
        with pytest.raises(ValueError):
            draft.append(draft.widgets[0])

    @pytest.mark.unit
    def test_add_widget_uses_registry_payload(self):
        """add_widget seeds the payload from the variant."""
        draft = new_draft("t").add_widget(WidgetType.LIVE, "live-stream")
        widget = draft.widgets[0]
        assert widget.position == 0
        assert widget.channel == Channel.NEUTRAL
        assert widget.data == {"stream_url": "", "is_live": False}

    @pytest.mark.unit
    def test_receiver_unchanged(self):
        """Operations return a new draft."""
        draft = _draft("A")
        draft.append(Widget(id="B", type="text", variant="text-small"))
        assert _ids(draft) == ["A"]

    @pytest.mark.unit
    def test_remove_renumbers(self):
        """Removing a widget shifts later ones down."""
        draft = _draft("A", "B", "C").remove("A")
        assert _ids(draft) == ["B", "C"]
        assert _positions(draft) == [0, 1]

    @pytest.mark.unit
    def test_remove_featured_clears_feature(self):
        """Deleting the featured widget leaves no feature."""
        draft = _draft("A", "B").set_feature("B").remove("B")
        assert draft.feature_widget_id is None

    @pytest.mark.unit
    def test_remove_unknown(self):
        """Unknown ids raise WidgetNotFoundError."""
        with pytest.raises(WidgetNotFoundError):
            _draft("A").remove("Z")


class TestMoves:
    """Tests for ordering operations."""

    @pytest.mark.unit
    def test_move_to(self):
        """[A,B,C] move 0 -> 2 gives [B,C,A]."""
        draft = _draft("A", "B", "C").move_to(0, 2)
        assert _ids(draft) == ["B", "C", "A"]
        assert _positions(draft) == [0, 1, 2]

    @pytest.mark.unit
    def test_move_to_same_index(self):
        """move_to(i, i) is a no-op."""
        draft = _draft("A", "B", "C")
        assert draft.move_to(1, 1) == draft

    @pytest.mark.unit
    def test_move_up_down(self):
        """Button moves are single-step move_to calls."""
        draft = _draft("A", "B", "C")
        assert _ids(draft.move_up("B")) == ["B", "A", "C"]
        assert _ids(draft.move_down("B")) == ["A", "C", "B"]

    @pytest.mark.unit
    def test_move_at_edges(self):
        """Moving past either end leaves the order alone."""
        draft = _draft("A", "B", "C")
        assert _ids(draft.move_up("A")) == ["A", "B", "C"]
        assert _ids(draft.move_down("C")) == ["A", "B", "C"]

    @pytest.mark.unit
    def test_reorder(self):
        """A full id ordering is applied."""
        draft = _draft("A", "B", "C").reorder(["C", "B", "A"])
        assert _ids(draft) == ["C", "B", "A"]
        assert _positions(draft) == [0, 1, 2]

    @pytest.mark.unit
    def test_move_keeps_feature(self):
        """Moving does not touch the feature flag."""
        draft = _draft("A", "B", "C").set_feature("A").move_to(0, 2)
        assert draft.feature_widget_id == "A"


class TestFeature:
    """Tests for the featured widget."""

    @pytest.mark.unit
    def test_set_feature(self):
        """The featured widget gets an empty caption."""
        draft = _draft("A", "B").set_feature("A")
        assert draft.feature_widget_id == "A"
        assert draft.feature_widget.featured_caption == ""

    @pytest.mark.unit
    def test_set_feature_toggles(self):
        """Featuring the featured widget again turns it off."""
        draft = _draft("A").set_feature("A").set_feature("A")
        assert draft.feature_widget_id is None
        assert draft.widgets[0].featured_caption is None

    @pytest.mark.unit
    def test_switching_feature_clears_other_caption(self):
        """Only one widget is featured; the old caption is dropped."""
        draft = (
            _draft("A", "B")
            .set_feature("A")
            .set_featured_caption("A", "look")
            .set_feature("B")
        )
        assert [w.is_feature for w in draft.widgets] == [False, True]
        assert draft.widgets[0].featured_caption is None
        assert draft.widgets[1].featured_caption == ""

    @pytest.mark.unit
    def test_caption_requires_feature(self):
        """Captions are only set on the featured widget."""
        with pytest.raises(ValueError):
            _draft("A").set_featured_caption("A", "nope")

    @pytest.mark.unit
    def test_feature_id_derived(self):
        """feature_widget_id always reflects the widget flags."""
        draft = _draft("A", "B").set_feature("B")
        assert draft.feature_widget_id == draft.feature_widget.id == "B"


class TestChannels:
    """Tests for channel queries."""

    @pytest.mark.unit
    def test_widgets_on_channel(self):
        """Widgets are filtered by channel."""
        draft = _draft("A", "B", "C").set_channel("A", "red").set_channel("C", "red")
        assert [w.id for w in draft.widgets_on_channel(Channel.RED)] == ["A", "C"]

    @pytest.mark.unit
    def test_driving_widget_by_priority(self):
        """The lowest-priority type drives the channel."""
        draft = (
            new_draft("t")
            .append(Widget(id="txt", type="text", variant="text-small"))
            .append(Widget(id="btn", type="button", variant="button-two"))
            .set_channel("txt", "blue")
            .set_channel("btn", "blue")
        )
        assert draft.driving_widget("blue").id == "btn"

    @pytest.mark.unit
    def test_driving_widget_tie_goes_first(self):
        """Equal priorities resolve to the earlier widget."""
        draft = _draft("A", "B").set_channel("A", "green").set_channel("B", "green")
        assert draft.driving_widget("green").id == "A"

    @pytest.mark.unit
    def test_neutral_has_no_driver(self):
        """Neutral widgets never drive anything."""
        assert _draft("A").driving_widget(Channel.NEUTRAL) is None
        assert _draft("A").driving_widget(Channel.RED) is None


class TestFields:
    """Tests for document field updates and serialisation."""

    @pytest.mark.unit
    def test_field_setters(self):
        """Field setters return updated copies."""
        draft = (
            new_draft()
            .set_title("T")
            .set_tagline("tag")
            .set_description("desc")
            .set_banner("media-1", static=True)
            .set_visibility("unlisted")
        )
        assert (draft.title, draft.tagline, draft.description) == ("T", "tag", "desc")
        assert draft.banner == "media-1" and draft.banner_static
        assert draft.visibility == Visibility.UNLISTED

    @pytest.mark.unit
    def test_with_id_and_publish(self):
        """Id adoption and publishing flip the right flags."""
        draft = new_draft("T").with_id("scape-1").mark_published()
        assert draft.id == "scape-1"
        assert not draft.is_new
        assert not draft.is_draft

    @pytest.mark.unit
    def test_update_widget_data(self):
        """Payload replacement is copied."""
        payload = {"content": "hello"}
        draft = _draft("A").update_widget_data("A", payload)
        payload["content"] = "changed"
        assert draft.get_widget("A").data == {"content": "hello"}

    @pytest.mark.unit
    def test_dict_round_trip(self):
        """to_dict/from_dict keep ids, order and the feature."""
        draft = _draft("A", "B", "C").set_feature("B").move_to(2, 0)
        payload = draft.to_dict()
        assert payload["feature_widget_id"] == "B"
        restored = ScapeDraft.from_dict(payload)
        assert restored == draft
        assert _ids(restored) == ["C", "A", "B"]

    @pytest.mark.unit
    def test_from_dict_positions_follow_list_order(self):
        """Missing or stale positions on input are rewritten from order."""
        payload = {
            "title": "Wire",
            "widgets": [
                {"id": "a", "type": "text", "variant": "text-small", "position": 7},
                {"id": "b", "type": "text", "variant": "text-small"},
                {"id": "c", "type": "text", "variant": "text-small", "position": 0},
            ],
        }
        draft = ScapeDraft.from_dict(payload)

        assert _ids(draft) == ["a", "b", "c"]
        assert [w.position for w in draft.widgets] == [0, 1, 2]
        assert validate_scape(draft).can_publish

"""
Tests for Run: payload kinds and validated character formatting.
"""

import pytest

from docx_engine import BreakType, Field, PageNumberField, Run, RunFormatting, ValidationError
from docx_engine.models.run import RunKind


class TestRunKinds:
    """Tests for the single payload a run carries."""

    def test_text_run(self):
        run = Run("plain")
        assert run.kind is RunKind.TEXT
        assert run.text == "plain"

    def test_field_run_text_is_result(self):
        run = Run(field=Field(PageNumberField(), result="5"))
        assert run.kind is RunKind.FIELD
        assert run.text == "5"

    def test_break_run(self):
        run = Run(break_type=BreakType.COLUMN)
        assert run.kind is RunKind.BREAK
        assert run.text == ""

    def test_two_payloads_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Run("text", break_type=BreakType.PAGE)
        assert exc_info.value.field == "payload"

    def test_text_cannot_be_set_on_field_run(self):
        run = Run(field=Field(PageNumberField()))
        with pytest.raises(ValidationError):
            run.text = "3"

    def test_control_character_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Run("a\x0bb")
        assert exc_info.value.field == "text"
        assert "U+000B" in exc_info.value.message

    def test_control_character_rejected_by_setter(self):
        run = Run("fine")
        with pytest.raises(ValidationError) as exc_info:
            run.text = "bad\x00"
        assert exc_info.value.op == "set_text"
        assert run.text == "fine"

    def test_tab_newline_and_carriage_return_allowed(self):
        assert Run("a\tb\nc\rd").text == "a\tb\nc\rd"

    def test_field_result_rejects_control_character(self):
        field = Field(PageNumberField(), result="1")
        with pytest.raises(ValidationError) as exc_info:
            field.result = "\x07"
        assert exc_info.value.field == "result"
        assert field.result == "1"

    def test_formatting_object_is_used(self):
        fmt = RunFormatting(bold=True)
        run = Run("x", formatting=fmt)
        assert run.formatting is fmt
        assert run.bold is True


class TestRunFormatting:
    """Tests for property setters and their validation."""

    @pytest.mark.parametrize("value,expected", [("#00ff7f", "00FF7F"), ("abcdef", "ABCDEF"), ("auto", "auto")])
    def test_color_normalized(self, value, expected):
        run = Run("x", color=value)
        assert run.color == expected

    @pytest.mark.parametrize("value", ["red", "#12345", "GGGGGG"])
    def test_bad_color(self, value):
        with pytest.raises(ValidationError) as exc_info:
            Run("x", color=value)
        assert exc_info.value.field == "color"

    @pytest.mark.parametrize("value", [2, 24, 3276])
    def test_font_size_bounds(self, value):
        assert Run("x", font_size=value).font_size == value

    @pytest.mark.parametrize("value", [1, 3277, 12.5, True])
    def test_bad_font_size(self, value):
        with pytest.raises(ValidationError):
            Run("x", font_size=value)

    def test_underline_true_means_single(self):
        run = Run("x", underline=True)
        assert run.underline == "single"
        run.underline = False
        assert run.underline == "none"

    def test_bad_underline(self):
        with pytest.raises(ValidationError):
            Run("x", underline="squiggly")

    def test_highlight(self):
        assert Run("x", highlight="yellow").highlight == "yellow"
        with pytest.raises(ValidationError):
            Run("x", highlight="FFFF00")

    def test_clearing_a_property(self):
        run = Run("x", bold=True)
        run.bold = None
        assert run.formatting.is_empty()

    def test_superscript_and_subscript(self):
        run = Run("x", superscript=True)
        run.subscript = True
        assert run.subscript is True
        assert run.superscript is not True

    def test_caps(self):
        run = Run("x", small_caps=True, all_caps=False)
        assert run.small_caps is True
        assert run.all_caps is False

"""
Tests for the schema builders and result validation.
"""

from hgpro_mcp.core.schemas import build_summary, validate_wrb_result


def gap_dict(start, top=105.0, bottom=100.0, filled=False):
    return {
        "type": "buy",
        "top": top,
        "bottom": bottom,
        "startIndex": start,
        "endIndex": start + 3,
        "filled": filled,
        "filledIndex": start + 3 if filled else None,
        "pro": False,
        "diff": top - bottom,
    }


def make_result():
    gap = gap_dict(1)
    return {
        "flags": [False, True, False],
        "gaps": [None, gap, None],
        "active": [gap],
        "filled": [],
        "summary": build_summary(1, 1, 1, 0, 0, {"index": 1, "type": "buy", "pro": False}),
    }


class TestBuildSummary:
    def test_keys(self):
        summary = build_summary(5, 3, 2, 1, 1)

        assert summary == {
            "totalWRB": 5,
            "totalGaps": 3,
            "activeCount": 2,
            "filledCount": 1,
            "proCount": 1,
            "lastSignal": None,
        }

    def test_last_signal(self):
        signal = {"index": 9, "type": "sell", "pro": True}
        assert build_summary(1, 1, 1, 0, 1, signal)["lastSignal"] == signal


class TestValidateWRBResult:
    """Tests for validate_wrb_result."""

    def test_valid(self):
        assert validate_wrb_result(make_result()) == (True, None)

    def test_missing_key(self):
        result = make_result()
        del result["filled"]

        is_valid, error = validate_wrb_result(result)
        assert not is_valid
        assert "filled" in error

    def test_misaligned(self):
        result = make_result()
        result["gaps"].append(None)

        is_valid, _ = validate_wrb_result(result)
        assert not is_valid

    def test_summary_missing_key(self):
        result = make_result()
        del result["summary"]["proCount"]

        is_valid, error = validate_wrb_result(result)
        assert not is_valid
        assert "proCount" in error

    def test_count_mismatch(self):
        result = make_result()
        result["summary"]["filledCount"] = 1

        is_valid, _ = validate_wrb_result(result)
        assert not is_valid

    def test_degenerate_zone(self):
        result = make_result()
        result["active"] = [gap_dict(1, top=100.0, bottom=100.0)]

        is_valid, error = validate_wrb_result(result)
        assert not is_valid
        assert "top <= bottom" in error

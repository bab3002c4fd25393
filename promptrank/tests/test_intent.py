"""Unit tests for intent analysis."""

import pytest

from promptrank.pipeline.intent import (
    CATEGORY_KEYWORDS, DOMAIN_KEYWORDS, MAX_CONFIDENCE, MIN_CONFIDENCE,
    analyze_intent, best_match, extract_keywords, keywords_for
)
from promptrank.pipeline.models import IntentCategory, IntentDomain, Tone, Urgency


class TestCategoryAndDomain:
    """Test keyword-table classification."""

    def test_create_communication(self):
        """Test create/communication classification."""
        intent = analyze_intent("write a formal apology email")

        assert intent.category == IntentCategory.CREATE
        assert intent.domain == IntentDomain.COMMUNICATION
        assert intent.category_hits == 1
        assert intent.domain_hits == 1

    def test_highest_count_wins(self):
        """Test highest hit count selection."""
        # one create hit ("write") vs two optimize hits
        intent = analyze_intent("write then improve and refine the draft")
        assert intent.category == IntentCategory.OPTIMIZE

    def test_tie_goes_to_first_table_row(self):
        """Test category tie-break by table order."""
        # "write" (create) vs "review" (analyze): one hit each
        intent = analyze_intent("write review")
        assert intent.category == IntentCategory.CREATE

    def test_tie_break_in_isolation(self):
        """Test best_match tie-break directly."""
        table = (("first", ("alpha",)), ("second", ("beta",)))
        assert best_match("alpha beta", table, "none") == ("first", 1)
        assert best_match("beta", table, "none") == ("second", 1)
        assert best_match("gamma", table, "none") == ("none", 0)

    def test_chinese_keywords(self):
        """Test Chinese keyword classification."""
        intent = analyze_intent("帮我优化这段代码")
        assert intent.category == IntentCategory.OPTIMIZE
        assert intent.domain == IntentDomain.TECHNICAL

    def test_no_hits_is_other_general(self):
        """Test default category and domain."""
        intent = analyze_intent("banana smoothie")
        assert intent.category == IntentCategory.OTHER
        assert intent.domain == IntentDomain.GENERAL

    def test_tables_are_ordered(self):
        """Test keyword table layout."""
        assert [c for c, _ in CATEGORY_KEYWORDS][0] == IntentCategory.CREATE
        assert [d for d, _ in DOMAIN_KEYWORDS][-1] == IntentDomain.LEGAL
        assert keywords_for(IntentCategory.OTHER) == ()
        assert keywords_for(IntentDomain.GENERAL) == ()
        assert "email" in keywords_for(IntentDomain.COMMUNICATION)


class TestToneAndUrgency:
    """Test first-match tone and urgency checks."""

    def test_formal_tone(self):
        """Test formal tone detection."""
        assert analyze_intent("formal letter").tone == Tone.FORMAL

    def test_first_tone_match_wins(self):
        """Test first tone match precedence."""
        # matches both casual ("simple") and concise ("brief")
        assert analyze_intent("simple brief summary").tone == Tone.CASUAL

    def test_default_tone(self):
        """Test default tone."""
        assert analyze_intent("summary of a meeting").tone == Tone.DETAILED

    def test_urgency(self):
        """Test urgency levels."""
        assert analyze_intent("urgent contract review").urgency == Urgency.HIGH
        assert analyze_intent("need it soon").urgency == Urgency.MEDIUM
        assert analyze_intent("whenever").urgency == Urgency.LOW


class TestKeywordExtraction:
    """Test keyword extraction."""

    def test_strips_punctuation_and_stop_words(self):
        """Test punctuation and stop word removal."""
        keywords = extract_keywords("Write a formal, apology e-mail!")
        assert keywords == ("write", "formal", "apology", "mail")

    def test_deduplicates_preserving_order(self):
        """Test keyword dedup order."""
        keywords = extract_keywords("email Email EMAIL template email")
        assert keywords == ("email", "template")

    def test_drops_digits_and_single_chars(self):
        """Test numeric and short token removal."""
        assert extract_keywords("x 42 y report 2024") == ("report",)

    def test_caps_length(self):
        """Test default keyword cap."""
        query = " ".join(f"word{c}" for c in "abcdefghijkl")
        keywords = extract_keywords(query)
        assert len(keywords) == 8
        assert keywords[0] == "worda"

    def test_custom_cap(self):
        """Test custom keyword cap."""
        assert len(extract_keywords("alpha beta gamma delta", max_keywords=2)) == 2

    def test_no_duplicates_ever(self):
        """Test keyword uniqueness."""
        keywords = analyze_intent("plan plan plan plan the plan").keywords
        assert len(keywords) == len(set(keywords))


class TestConfidence:
    """Test the confidence heuristic."""

    def test_formula(self):
        """Test confidence calculation."""
        # 1 category hit + 1 domain hit + 4 keywords
        intent = analyze_intent("write a formal apology email")
        assert intent.confidence == pytest.approx(0.6)

    def test_floor(self):
        """Test confidence floor."""
        assert analyze_intent("zzz").confidence == MIN_CONFIDENCE

    def test_ceiling(self):
        """Test confidence ceiling."""
        intent = analyze_intent(
            "create write generate design marketing sales business management plan"
        )
        assert intent.confidence == MAX_CONFIDENCE


class TestEmptyQuery:
    """Test the degenerate intent."""

    @pytest.mark.parametrize("query", ["", "   ", "\n\t", None])
    def test_blank(self, query):
        """Test blank query intent."""
        intent = analyze_intent(query)

        assert intent.category == IntentCategory.OTHER
        assert intent.domain == IntentDomain.GENERAL
        assert intent.keywords == ()
        assert intent.confidence == 0.3

"""
Plateful Backend — Filter Unit & Query Tests
==============================================

What:  Tests for build_filter_query, the tag matchers and the text filter.
How:   Post-filters run on transient Restaurant objects; the query builder is
       checked both as compiled SQL and against a real SQLite database.
"""

import pytest
from sqlalchemy import select

from app.models.restaurant import Restaurant
from app.services.filters import (
    PRICE_MAX_BOUND,
    PRICE_MIN_BOUND,
    _normalized_price_range,
    build_filter_query,
    filter_by_text,
    match_all_tags,
    match_any_tags,
)


def _sql(clause) -> str:
    return str(clause.compile(compile_kwargs={"literal_binds": True}))


def _r(rid, **fields) -> Restaurant:
    return Restaurant(id=rid, name=fields.pop("name", rid), **fields)


class TestPriceRange:

    def test_no_bounds_means_no_range(self):
        assert _normalized_price_range(None, None) is None

    def test_missing_bounds_default_to_int_limits(self):
        assert _normalized_price_range(2, None) == (2, PRICE_MAX_BOUND)
        assert _normalized_price_range(None, 3) == (PRICE_MIN_BOUND, 3)

    def test_inverted_bounds_are_swapped(self):
        assert _normalized_price_range(5, 2) == (2, 5)

    def test_inverted_bounds_compile_to_sorted_between(self):
        sql = _sql(build_filter_query(price_min=5, price_max=2))
        assert "BETWEEN 2 AND 5" in sql


class TestBuildFilterQuery:

    def test_no_criteria_is_unconstrained(self):
        assert _sql(build_filter_query()).lower() == "true"

    def test_blank_cuisine_and_cities_are_ignored(self):
        assert _sql(build_filter_query(cuisine="  ", cities=["", "  "])).lower() == "true"

    def test_all_criteria_are_and_ed(self):
        sql = _sql(
            build_filter_query(
                cuisine="thai", price_min=1, price_max=3, reservation=True, cities=["Auckland"]
            )
        )
        assert sql.count(" AND ") >= 3
        assert "price_level BETWEEN 1 AND 3" in sql
        assert "reservation_required" in sql
        assert "lower(restaurants.city) = 'auckland'" in sql

    def test_cities_are_or_ed(self):
        sql = _sql(build_filter_query(cities=["Auckland", " wellington "]))
        assert " OR " in sql
        assert "'wellington'" in sql

    @pytest.mark.asyncio
    async def test_query_against_database(self, make_restaurant, db_session):
        await make_restaurant(id="a", cuisine="Thai Fusion", price_level=2,
                              reservation_required=True, city="Auckland")
        await make_restaurant(id="b", cuisine="Italian", price_level=4,
                              reservation_required=False, city="Wellington")
        await make_restaurant(id="c", cuisine="thai", price_level=1,
                              reservation_required=False, city="auckland ")
        await make_restaurant(id="d", cuisine="Thai", price_level=None, city="Christchurch")

        async def ids(**criteria):
            result = await db_session.execute(
                select(Restaurant.id).where(build_filter_query(**criteria)).order_by(Restaurant.id)
            )
            return list(result.scalars().all())

        assert await ids() == ["a", "b", "c", "d"]
        assert await ids(cuisine="THAI") == ["a", "c", "d"]
        assert await ids(price_min=2) == ["a", "b"]
        assert await ids(price_min=5, price_max=2) == ["a", "b"]
        assert await ids(reservation=False) == ["b", "c", "d"]
        # Exact city match: "auckland " with a trailing space in the data does not match
        assert await ids(cities=["  AUCKLAND  ", "wellington"]) == ["a", "b"]
        assert await ids(cuisine="thai", price_max=2, cities=["Auckland"]) == ["a"]

    @pytest.mark.asyncio
    async def test_cuisine_wildcards_are_literal(self, make_restaurant, db_session):
        await make_restaurant(id="a", cuisine="Thai")
        await make_restaurant(id="b", cuisine="100% Vegan")

        result = await db_session.execute(
            select(Restaurant.id).where(build_filter_query(cuisine="%"))
        )
        assert list(result.scalars().all()) == ["b"]


class TestTagMatcher:

    def setup_method(self):
        self.vegan_gf = _r("1", tags=["Vegan", "Gluten-Free", "cosy"])
        self.vegan = _r("2", tags=["vegan"])
        self.untagged = _r("3", tags=None)
        self.blank = _r("4", tags=["", "  "])
        self.candidates = [self.vegan_gf, self.vegan, self.untagged, self.blank]

    def test_match_all_requires_every_tag(self):
        result = match_all_tags(self.candidates, ["vegan", "gluten-free"])
        assert result == [self.vegan_gf]

    def test_match_all_is_case_insensitive(self):
        assert match_all_tags(self.candidates, ["VEGAN"]) == [self.vegan_gf, self.vegan]

    def test_match_any_requires_one_tag(self):
        result = match_any_tags(self.candidates, ["cosy", "GLUTEN-free", "halal"])
        assert result == [self.vegan_gf]

    def test_match_any_case_insensitive(self):
        assert match_any_tags(self.candidates, ["Vegan"]) == [self.vegan_gf, self.vegan]

    def test_empty_filter_is_a_no_op(self):
        assert match_any_tags(self.candidates, []) is self.candidates
        assert match_all_tags(self.candidates, None) is self.candidates
        assert match_all_tags(self.candidates, ["", "  "]) is self.candidates

    def test_empty_candidates_returned_unchanged(self):
        empty = []
        assert match_any_tags(empty, ["vegan"]) is empty
        assert match_all_tags(None, ["vegan"]) is None

    def test_non_string_stored_tags_are_skipped(self):
        mixed = _r("5", tags=["Vegan", 5, None, {"k": "v"}])
        scalar = _r("6", tags="vegan")
        candidates = [mixed, scalar]

        assert match_any_tags(candidates, ["vegan"]) == [mixed]
        assert match_all_tags(candidates, ["vegan"]) == [mixed]

    def test_blank_filter_entries_are_ignored(self):
        assert match_all_tags(self.candidates, ["vegan", " "]) == [self.vegan_gf, self.vegan]


class TestTextQueryFilter:

    def setup_method(self):
        self.sushi = _r("1", name="Sushi Bar", description=None, cuisine="Japanese")
        self.pasta = _r("2", name="Nonna's", description="Fresh pasta daily", cuisine=None)
        self.grill = _r("3", name="The Grill", description="Steaks", cuisine="American")
        self.candidates = [self.sushi, self.pasta, self.grill]

    def test_empty_query_returns_input_unchanged(self):
        assert filter_by_text(self.candidates, "") is self.candidates
        assert filter_by_text(self.candidates, "   ") is self.candidates
        assert filter_by_text(self.candidates, None) is self.candidates

    def test_matches_name(self):
        assert filter_by_text(self.candidates, "sushi") == [self.sushi]

    def test_matches_description_with_null_cuisine(self):
        assert filter_by_text(self.candidates, "PASTA") == [self.pasta]

    def test_matches_cuisine_with_null_description(self):
        assert filter_by_text(self.candidates, "japan") == [self.sushi]

    def test_query_is_trimmed(self):
        assert filter_by_text(self.candidates, "  grill ") == [self.grill]

    def test_no_match(self):
        assert filter_by_text(self.candidates, "tacos") == []

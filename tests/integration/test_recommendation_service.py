"""
Integration tests for recommendation modes
"""
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from storefront.core.exceptions import StoreUnavailable
from storefront.services.recommendation_service import (
    RecommendationService,
    RecommendationType,
    recommendation_service,
)


def ids(result):
    return [entry.id for entry in result.entries]


FEATURED = [6, 4, 2, 1]


class TestResolveType:
    """Mode parsing"""

    @pytest.mark.unit
    def test_default_is_similar(self):
        assert recommendation_service.resolve_type(None) is RecommendationType.similar

    @pytest.mark.unit
    def test_known_mode(self):
        assert recommendation_service.resolve_type("trending") is RecommendationType.trending

    @pytest.mark.unit
    def test_unknown_mode_falls_back_with_warning(self, caplog):
        with caplog.at_level("WARNING"):
            assert recommendation_service.resolve_type("bogus") is RecommendationType.featured
        assert "bogus" in caplog.text


class TestFeaturedAndFallbacks:

    @pytest.mark.integration
    async def test_featured_newest_first(self, db_session, catalog):
        result = await recommendation_service.recommend(db_session, "featured")
        assert ids(result) == FEATURED
        assert not result.fell_back

    @pytest.mark.integration
    async def test_unknown_mode_returns_featured(self, db_session, catalog):
        result = await recommendation_service.recommend(db_session, "bogus")
        assert result.strategy is RecommendationType.featured
        assert result.fell_back
        assert ids(result) == FEATURED

    @pytest.mark.integration
    async def test_missing_seed_returns_featured(self, db_session, catalog):
        result = await recommendation_service.recommend(db_session, "similar")
        assert result.strategy is RecommendationType.featured

    @pytest.mark.integration
    async def test_unknown_product_returns_featured(self, db_session, catalog):
        result = await recommendation_service.recommend(db_session, "similar", product_id=999)
        assert ids(result) == FEATURED

    @pytest.mark.integration
    async def test_limit(self, db_session, catalog):
        result = await recommendation_service.recommend(db_session, "featured", limit=2)
        assert ids(result) == [6, 4]

    @pytest.mark.integration
    async def test_inactive_products_never_recommended(self, db_session, catalog):
        for mode in RecommendationType:
            result = await recommendation_service.recommend(
                db_session, mode.value, product_id=catalog.amber, user_id=catalog.alice,
                category_id=catalog.tasbih_category,
            )
            assert catalog.inactive not in ids(result)


class TestSimilarAndCategory:

    @pytest.mark.integration
    async def test_similar_same_category_excluding_seed(self, db_session, catalog):
        result = await recommendation_service.recommend(db_session, "similar", product_id=catalog.amber)
        assert ids(result) == [catalog.crystal]
        assert result.strategy is RecommendationType.similar

    @pytest.mark.integration
    async def test_category_featured_first(self, db_session, catalog):
        result = await recommendation_service.recommend(
            db_session, "category", category_id=catalog.crosses_category
        )
        assert ids(result) == [catalog.silver, catalog.wooden]

    @pytest.mark.integration
    async def test_unknown_category_returns_featured(self, db_session, catalog):
        result = await recommendation_service.recommend(db_session, "category", category_id=999)
        assert result.strategy is RecommendationType.featured


class TestFrequentlyBoughtTogether:

    @pytest.mark.integration
    async def test_ranked_by_shared_orders(self, db_session, catalog):
        result = await recommendation_service.recommend(
            db_session, "frequently_bought_together", product_id=catalog.amber
        )
        # crystal shares two orders; wooden and rosary one each, by id
        assert ids(result) == [catalog.crystal, catalog.wooden, catalog.rosary]
        assert catalog.amber not in ids(result)

    @pytest.mark.integration
    async def test_capped_at_six(self, db_session, catalog):
        service = RecommendationService(frequently_bought_together_limit=1)
        result = await service.recommend(db_session, "frequently_bought_together", product_id=catalog.amber, limit=8)
        assert ids(result) == [catalog.crystal]

    @pytest.mark.integration
    async def test_never_ordered_seed_is_empty(self, db_session, catalog):
        result = await recommendation_service.recommend(
            db_session, "frequently_bought_together", product_id=catalog.silver
        )
        assert result.entries == []
        assert result.strategy is RecommendationType.frequently_bought_together


class TestTrending:

    @pytest.mark.integration
    async def test_counts_only_recent_orders(self, db_session, catalog, now):
        result = await recommendation_service.recommend(db_session, "trending", now=now)
        assert ids(result) == [catalog.amber, catalog.crystal, catalog.rosary, catalog.rudraksha]
        # the 40 day old order is outside the window
        assert catalog.wooden not in ids(result)
        assert result.entries[0].order_count == 2

    @pytest.mark.integration
    async def test_window_moves_with_now(self, db_session, catalog, now):
        result = await recommendation_service.recommend(db_session, "trending", now=now + timedelta(days=26))
        assert ids(result) == [catalog.rudraksha]


class TestPersonalized:

    @pytest.mark.integration
    async def test_uses_order_history(self, db_session, catalog):
        result = await recommendation_service.recommend(db_session, "personalized", user_id=catalog.alice)
        # amber and crystal share all their tags with alice's orders, newest first
        assert ids(result) == [catalog.crystal, catalog.amber, catalog.silver, catalog.wooden]

    @pytest.mark.integration
    async def test_shared_tags_outrank_recency(self, db_session, catalog):
        result = await recommendation_service.recommend(db_session, "personalized", user_id=catalog.alice)
        entries = {entry.id: entry for entry in result.entries}
        # silver is newer than both tasbihs but shares only "christian"
        assert entries[catalog.silver].product.created_at > entries[catalog.crystal].product.created_at
        assert ids(result).index(catalog.silver) > ids(result).index(catalog.crystal)

    @pytest.mark.integration
    async def test_no_history_equals_featured(self, db_session, catalog):
        personalized = await recommendation_service.recommend(db_session, "personalized", user_id=catalog.carol)
        featured = await recommendation_service.recommend(db_session, "featured")
        assert ids(personalized) == ids(featured)


class TestStoreFailure:

    @pytest.mark.integration
    async def test_database_error_is_wrapped(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))
        with pytest.raises(StoreUnavailable):
            await recommendation_service.recommend(mock_db_session, "trending")

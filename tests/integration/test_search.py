"""Integration tests for the public listing search against a real schema."""

import math
from decimal import Decimal

import pytest

from homefinder.models.entities import DealStatus, DealType, ListingPurpose
from homefinder.services.filters import compile_filters
from homefinder.services.pagination import parse_window
from homefinder.services.search_service import (
    get_listing,
    list_agent_listings,
    public_clauses,
    search_listings,
)
from tests.utils.factories import (
    create_agent,
    create_city,
    create_deal,
    create_listing,
    create_location,
    create_property_type,
)
from tests.utils.helpers import persist


async def run_search(session, params, page=None, limit=None):
    compiled = compile_filters(params)
    window = parse_window(page, limit, default_limit=12, max_limit=48)
    return await search_listings(session, public_clauses(compiled.spec), window)


@pytest.mark.integration
class TestPublicSearch:

    @pytest.mark.asyncio
    async def test_newest_first(self, session):
        first = await create_listing(session, created_minute=1)
        second = await create_listing(session, created_minute=2)
        third = await create_listing(session, created_minute=3)
        await persist(session)

        page = await run_search(session, {})

        assert [listing.id for listing in page.listings] == [third.id, second.id, first.id]
        assert page.total == 3

    @pytest.mark.asyncio
    async def test_equal_timestamps_are_ordered_by_id(self, session):
        for _ in range(5):
            await create_listing(session, created_minute=0)
        await persist(session)

        page = await run_search(session, {})
        ids = [listing.id for listing in page.listings]

        assert ids == sorted(ids, reverse=True)

    @pytest.mark.asyncio
    async def test_price_bounds_are_inclusive(self, session):
        for price in (499, 500, 1000, 1500, 1501):
            await create_listing(session, price=price)
        await persist(session)

        page = await run_search(session, {"minPrice": "500", "maxPrice": "1500"})

        prices = sorted(listing.price for listing in page.listings)
        assert prices == [Decimal("500"), Decimal("1000"), Decimal("1500")]
        assert all(Decimal("500") <= price <= Decimal("1500") for price in prices)

    @pytest.mark.asyncio
    async def test_area_bounds_are_inclusive(self, session):
        for area in (39, 40, 120, 121):
            await create_listing(session, area_sqm=float(area))
        await persist(session)

        page = await run_search(session, {"minArea": "40", "maxArea": "120"})

        assert sorted(listing.area_sqm for listing in page.listings) == [40.0, 120.0]
        assert page.total == 2

    @pytest.mark.asyncio
    async def test_completed_deal_hides_listing(self, session):
        hidden = await create_listing(session)
        await create_deal(session, hidden, status=DealStatus.COMPLETED)
        for _ in range(9):
            await create_deal(session, hidden, status=DealStatus.PENDING)
        pending = await create_listing(session)
        await create_deal(session, pending, status=DealStatus.PENDING)
        await create_deal(session, pending, status=DealStatus.CANCELLED)
        await persist(session)

        page = await run_search(session, {})

        assert [listing.id for listing in page.listings] == [pending.id]
        assert page.total == 1

    @pytest.mark.asyncio
    async def test_pagination_consistency(self, session):
        for minute in range(25):
            await create_listing(session, created_minute=minute)
        await persist(session)

        seen = []
        for page_number in (1, 2, 3):
            page = await run_search(session, {}, page=str(page_number), limit="10")
            assert page.total == 25
            seen.extend(listing.id for listing in page.listings)

        assert len(seen) == 25
        assert len(set(seen)) == 25
        assert math.ceil(25 / 10) == 3

    @pytest.mark.asyncio
    async def test_page_beyond_end_is_empty(self, session):
        await create_listing(session)
        await persist(session)

        page = await run_search(session, {}, page="9")

        assert page.listings == []
        assert page.total == 1

    @pytest.mark.asyncio
    async def test_bedrooms_lower_bound(self, session):
        for bedrooms in (4, 5, 9):
            await create_listing(session, bedrooms=bedrooms)
        await persist(session)

        page = await run_search(session, {"bedrooms": "5+"})

        assert sorted(listing.bedrooms for listing in page.listings) == [5, 9]

    @pytest.mark.asyncio
    async def test_exact_bathrooms(self, session):
        for bathrooms in (1, 2, 3):
            await create_listing(session, bathrooms=bathrooms)
        await persist(session)

        page = await run_search(session, {"bathrooms": "2"})

        assert [listing.bathrooms for listing in page.listings] == [2]

    @pytest.mark.asyncio
    async def test_rental_scenario_excludes_rented(self, session):
        visible = await create_listing(
            session, purpose=ListingPurpose.RENT, price=1000, bedrooms=2, created_minute=1
        )
        rented = await create_listing(
            session, purpose=ListingPurpose.RENT, price=1000, bedrooms=2, created_minute=2
        )
        await create_deal(session, rented, status=DealStatus.COMPLETED, deal_type=DealType.SALE)
        await create_listing(session, purpose=ListingPurpose.SALE, price=1000, bedrooms=2)
        await create_listing(session, purpose=ListingPurpose.RENT, price=1000, bedrooms=3)
        await persist(session)

        page = await run_search(
            session, {"purpose": "RENT", "minPrice": "500", "maxPrice": "1500", "bedrooms": "2"}
        )

        assert [listing.id for listing in page.listings] == [visible.id]

    @pytest.mark.asyncio
    async def test_city_and_type_match_case_insensitively(self, session):
        tirana = await create_city(session, "Tirana")
        durres = await create_city(session, "Durres")
        apartment = await create_property_type(session, "Apartment")
        villa = await create_property_type(session, "Villa")
        match = await create_listing(
            session, location=await create_location(session, tirana), property_type=apartment
        )
        await create_listing(session, location=await create_location(session, tirana), property_type=villa)
        await create_listing(session, location=await create_location(session, durres), property_type=apartment)
        await create_listing(session)
        await persist(session)

        page = await run_search(session, {"city": "TIRANA", "type": "apartment"})

        assert [listing.id for listing in page.listings] == [match.id]
        assert page.listings[0].location.city.name == "Tirana"

    @pytest.mark.asyncio
    async def test_location_text_searches_title_area_and_city(self, session):
        vlore = await create_city(session, "Vlore")
        other = await create_city(session, "Shkoder")
        by_title = await create_listing(session, title="Flat near Blloku park", created_minute=3)
        by_area = await create_listing(
            session, location=await create_location(session, other, "Blloku"), created_minute=2
        )
        by_city = await create_listing(
            session, title="Beach house", location=await create_location(session, vlore), created_minute=1
        )
        await create_listing(session, title="Mountain cabin", location=await create_location(session, other, "Center"))
        await persist(session)

        blloku = await run_search(session, {"location": "blloku"})
        city = await run_search(session, {"location": "VLOR"})

        assert [listing.id for listing in blloku.listings] == [by_title.id, by_area.id]
        assert [listing.id for listing in city.listings] == [by_city.id]

    @pytest.mark.asyncio
    async def test_location_text_wildcards_are_literal(self, session):
        await create_listing(session, title="Plain title")
        percent = await create_listing(session, title="100% renovated")
        await persist(session)

        page = await run_search(session, {"location": "%"})

        assert [listing.id for listing in page.listings] == [percent.id]

    @pytest.mark.asyncio
    async def test_contradictory_range_matches_nothing(self, session):
        await create_listing(session, price=1000)
        await persist(session)

        page = await run_search(session, {"minPrice": "2000", "maxPrice": "1000"})

        assert page.listings == []
        assert page.total == 0


@pytest.mark.integration
class TestDirectLookups:

    @pytest.mark.asyncio
    async def test_detail_includes_sold_listing(self, session):
        sold = await create_listing(session)
        await create_deal(session, sold, status=DealStatus.COMPLETED)
        await persist(session)

        listing = await get_listing(session, sold.id)

        assert listing is not None
        assert [deal.status for deal in listing.deals] == [DealStatus.COMPLETED]

    @pytest.mark.asyncio
    async def test_unknown_listing(self, session):
        assert await get_listing(session, "does-not-exist") is None

    @pytest.mark.asyncio
    async def test_agent_inventory_includes_sold(self, session):
        agent = await create_agent(session, user_id="agent-user")
        other = await create_agent(session)
        sold = await create_listing(session, agent=agent, created_minute=1)
        await create_deal(session, sold, status=DealStatus.COMPLETED)
        active = await create_listing(session, agent=agent, created_minute=2)
        await create_listing(session, agent=other)
        await persist(session)

        listings = await list_agent_listings(session, agent.id)

        assert [listing.id for listing in listings] == [active.id, sold.id]
        assert len(listings[1].deals) == 1

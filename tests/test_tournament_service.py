"""
Tests for cached tournament, player and leaderboard reads.
"""

import pytest

from lumbertier import config
from lumbertier.cache import ReadThroughResolver, TTLCache
from lumbertier.contest.tournament_service import TournamentDataService
from lumbertier.errors import NotFoundError, TransientFetchError, ValidationError


@pytest.fixture
def service(upstream, clock):
    upstream.tournaments['42'] = {'id': '42', 'name': 'Demo Open'}
    upstream.players['p2'] = {'player_id': 'p2', 'name': 'Rory McIlroy'}
    return TournamentDataService(upstream, ReadThroughResolver(TTLCache(clock=clock)))


def count(upstream, kind):
    return len([c for c in upstream.calls if c[0] == kind])


class TestTournamentDataService:

    def test_tournament_cached_for_ttl(self, service, upstream, clock):
        service.get_tournament('42')
        clock.advance(config.TOURNAMENT_TTL)
        service.get_tournament('42')
        assert count(upstream, 'tournament') == 1

        clock.advance(1)
        service.get_tournament('42')
        assert count(upstream, 'tournament') == 2

    def test_leaderboard_has_short_ttl(self, service, upstream, clock):
        service.get_leaderboard('42')
        clock.advance(config.LEADERBOARD_TTL + 1)
        service.get_leaderboard('42')
        assert count(upstream, 'leaderboard') == 2

    def test_research_and_tournament_are_separate_keys(self, service, upstream):
        service.get_tournament('42')
        snapshot = service.get_research('42')

        assert snapshot.meta['name'] == 'Demo Open'
        assert count(upstream, 'tournament') == 1
        assert count(upstream, 'research') == 1

    def test_search_key_is_normalised(self, service, upstream):
        first = service.search_players('  Rory ', 10)
        second = service.search_players('rory', 10)

        assert first == second == [{'player_id': 'p2', 'name': 'Rory McIlroy'}]
        assert upstream.calls.count(('search', 'rory', 10)) == 1

    def test_search_limit_is_part_of_key(self, service, upstream):
        service.search_players('rory', 10)
        service.search_players('rory', 20)
        assert count(upstream, 'search') == 2

    @pytest.mark.parametrize('query, limit', [('', 10), ('   ', 10), ('rory', 0), ('rory', 51)])
    def test_search_validation(self, service, upstream, query, limit):
        with pytest.raises(ValidationError):
            service.search_players(query, limit)
        assert count(upstream, 'search') == 0

    def test_not_found_propagates_uncached(self, service, upstream):
        for _ in range(2):
            with pytest.raises(NotFoundError):
                service.get_player('nobody')
        assert count(upstream, 'player') == 2

    def test_transient_failure_then_recovery(self, service, upstream):
        upstream.fail_with = TransientFetchError("down")
        with pytest.raises(TransientFetchError):
            service.get_tournament('42')

        upstream.fail_with = None
        assert service.get_tournament('42')['name'] == 'Demo Open'

    def test_invalidate_tournament(self, service, upstream):
        service.get_tournament('42')
        service.get_research('42')
        service.get_leaderboard('42')
        service.get_player('p2')

        service.invalidate_tournament('42')

        service.get_tournament('42')
        service.get_research('42')
        service.get_leaderboard('42')
        service.get_player('p2')
        assert count(upstream, 'tournament') == 2
        assert count(upstream, 'research') == 2
        assert count(upstream, 'leaderboard') == 2
        assert count(upstream, 'player') == 1

    def test_ids_containing_separators_do_not_hit_other_entries(self, service, upstream):
        service.search_players('rory', 20)
        service.get_research('42')

        with pytest.raises(NotFoundError):
            service.get_player('search:rory:20')
        with pytest.raises(NotFoundError):
            service.get_tournament('42:research')

        assert ('player', 'search:rory:20') in upstream.calls
        assert ('tournament', '42:research') in upstream.calls

    def test_list_tournaments_cached(self, service, upstream, clock):
        assert service.list_tournaments() == [{'id': '42', 'name': 'Demo Open'}]
        service.list_tournaments()
        assert count(upstream, 'tournaments') == 1

        clock.advance(config.TOURNAMENT_TTL + 1)
        service.list_tournaments()
        assert count(upstream, 'tournaments') == 2

    def test_invalidate_tournament_drops_listing(self, service, upstream):
        service.list_tournaments()
        service.invalidate_tournament('42')
        service.list_tournaments()
        assert count(upstream, 'tournaments') == 2

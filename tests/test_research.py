"""
Tests for the player-form research table and player matching.
"""

import pytest

from lumbertier.contest.player_matcher import match_player
from lumbertier.contest.research import filter_player_form, format_stat, group_by_tier
from lumbertier.contest.models import PlayerForm
from lumbertier.errors import ValidationError


class TestFilterPlayerForm:

    def test_default_sort_is_last8_desc_with_missing_last(self, research_snapshot):
        df = filter_player_form(research_snapshot)

        assert list(df['player_id']) == ['p2', 'p1', 'p3', 'p5', 'p4']

    def test_tier_filter_is_case_insensitive(self, research_snapshot):
        df = filter_player_form(research_snapshot, tier='a')

        assert sorted(df['player_id']) == ['p1', 'p2']

    def test_all_keeps_every_tier(self, research_snapshot):
        assert len(filter_player_form(research_snapshot, tier='all')) == 5

    def test_name_query(self, research_snapshot):
        df = filter_player_form(research_snapshot, query=' LEE ')

        assert list(df['name']) == ['Min Woo Lee']

    def test_ascending_sort_keeps_missing_last(self, research_snapshot):
        df = filter_player_form(research_snapshot, sort_key='last4_trend', direction='asc')

        assert list(df['player_id']) == ['p3', 'p5', 'p1', 'p2', 'p4']

    def test_rejects_unknown_sort_key(self, research_snapshot):
        with pytest.raises(ValidationError):
            filter_player_form(research_snapshot, sort_key='salary')


class TestGroupByTier:

    def test_known_tiers_first_then_others(self):
        players = [
            PlayerForm('x1', 'X', tier='U'),
            PlayerForm('c1', 'C1', tier='C'),
            PlayerForm('a1', 'A1', tier='A'),
            PlayerForm('a2', 'A2', tier='A'),
        ]

        grouped = group_by_tier(players)

        assert list(grouped) == ['A', 'C', 'U']
        assert [p.player_id for p in grouped['A']] == ['a1', 'a2']

    def test_lowercase_tier_normalised(self, research_snapshot):
        grouped = group_by_tier(research_snapshot.player_form)

        assert [p.player_id for p in grouped['A']] == ['p1', 'p2']


@pytest.mark.parametrize('value, expected', [
    (33.44, '33.4'),
    (7, '7'),
    (None, '–'),
    (float('nan'), '–'),
])
def test_format_stat(value, expected):
    assert format_stat(value) == expected


class TestMatchPlayer:

    def test_exact_id(self, research_snapshot):
        assert match_player('p3', research_snapshot.player_form).name == 'Tommy Fleetwood'

    def test_exact_name_any_case(self, research_snapshot):
        assert match_player('rory mcilroy', research_snapshot.player_form).player_id == 'p2'

    def test_reordered_name(self, research_snapshot):
        assert match_player('Scheffler Scottie', research_snapshot.player_form).player_id == 'p1'

    def test_no_confident_match(self, research_snapshot):
        assert match_player('Tiger Woods', research_snapshot.player_form) is None

    def test_empty_inputs(self, research_snapshot):
        assert match_player('  ', research_snapshot.player_form) is None
        assert match_player('Rory', []) is None

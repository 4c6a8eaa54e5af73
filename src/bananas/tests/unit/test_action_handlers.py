from collections import Counter

import pytest

from bananas.logic.action_handlers import (
    handle_bananas,
    handle_board_state_update,
    handle_dump,
    handle_inspection_vote,
    handle_peel,
    handle_start,
)
from bananas.logic.board import sanitize_inspection_board
from bananas.logic.enums import GameErrorCode, RoomStatus, Vote
from bananas.logic.events import (
    DumpReceivedEvent,
    GameOverEvent,
    GameStartedEvent,
    PeelReceivedEvent,
    RoomStateUpdatedEvent,
    RottenBananaDeclaredEvent,
)
from bananas.logic.exceptions import (
    BananasTooEarlyError,
    HandSizeMismatchError,
    InsufficientTilesError,
    InvalidBoardError,
    InvalidVoteError,
    StaleActionError,
    TileNotInHandError,
)
from bananas.logic.state import Inspection
from bananas.logic.types import (
    BananasActionData,
    BoardStateActionData,
    DumpActionData,
    PeelActionData,
    VoteActionData,
)
from bananas.tests.helpers import client_tiles, create_player, create_room_state, row_board


class TestHandleStart:
    def test_deals_opening_hands(self, rng):
        state = create_room_state([create_player("alice"), create_player("bob")], status=RoomStatus.WAITING)

        result = handle_start(state, "alice", rng)

        new_state = result.new_state
        assert new_state.status == RoomStatus.PLAYING
        assert new_state.pool.size == 102
        assert all(p.hand_size == 21 for p in new_state.players.values())
        assert new_state.tiles_in_circulation() == 144

    def test_hand_events_then_room_state(self, rng):
        state = create_room_state([create_player("alice"), create_player("bob")], status=RoomStatus.WAITING)

        events = handle_start(state, "alice", rng).events

        assert [type(e) for e in events] == [GameStartedEvent, GameStartedEvent, RoomStateUpdatedEvent]
        assert events[0].target == "player_alice"
        assert events[1].target == "player_bob"

    def test_hand_event_matches_dealt_hand(self, rng):
        state = create_room_state([create_player("alice")], status=RoomStatus.WAITING)

        result = handle_start(state, "alice", rng)

        assert result.events[0].hand == list(result.new_state.players["alice"].hand)

    def test_five_players_get_fifteen(self, rng):
        players = [create_player(f"p{i}") for i in range(5)]
        result = handle_start(create_room_state(players, status=RoomStatus.WAITING), "p0", rng)
        assert all(p.hand_size == 15 for p in result.new_state.players.values())
        assert result.new_state.pool.size == 144 - 75

    def test_disconnected_player_dealt_silently(self, rng):
        state = create_room_state(
            [create_player("alice"), create_player("bob", connected=False)], status=RoomStatus.WAITING
        )

        result = handle_start(state, "alice", rng)

        assert result.new_state.players["bob"].hand_size == 21
        assert [e.target for e in result.events if isinstance(e, GameStartedEvent)] == ["player_alice"]

    def test_too_many_players(self, rng):
        players = [create_player(f"p{i}") for i in range(14)]
        with pytest.raises(InsufficientTilesError, match="Not enough tiles to deal"):
            handle_start(create_room_state(players, status=RoomStatus.WAITING), "p0", rng)

    def test_only_while_waiting(self, rng):
        state = create_room_state([create_player("alice")], status=RoomStatus.PLAYING)
        with pytest.raises(StaleActionError):
            handle_start(state, "alice", rng)

    def test_restart_resets_previous_game(self, rng):
        state = create_room_state(
            [create_player("alice", hand="CAT"), create_player("bob", is_out=True)],
            pool="XYZ",
            status=RoomStatus.WAITING,
        )

        new_state = handle_start(state, "bob", rng).new_state

        assert new_state.pool.size == 102
        assert not new_state.players["bob"].is_out
        assert new_state.tiles_in_circulation() == 144


class TestHandlePeel:
    def _state(self, pool="QRSTU"):
        return create_room_state(
            [create_player("alice", hand="CAT"), create_player("bob", hand="DOGS")],
            pool=pool,
        )

    def test_every_active_player_draws(self):
        result = handle_peel(self._state(), "alice", PeelActionData(board_tiles=row_board("CAT")))

        new_state = result.new_state
        assert new_state.pool.size == 3
        assert new_state.players["alice"].hand == ("C", "A", "T", "U")
        assert new_state.players["bob"].hand == ("D", "O", "G", "S", "T")

        peels = [e for e in result.events if isinstance(e, PeelReceivedEvent)]
        assert [(e.target, e.tile) for e in peels] == [("player_alice", "U"), ("player_bob", "T")]
        assert isinstance(result.events[-1], RoomStateUpdatedEvent)

    def test_eliminated_players_do_not_draw(self):
        state = create_room_state(
            [create_player("alice", hand="CAT"), create_player("bob", is_out=True)],
            pool="QR",
        )

        new_state = handle_peel(state, "alice", PeelActionData(board_tiles=row_board("CAT"))).new_state

        assert new_state.pool.size == 1
        assert new_state.players["bob"].hand == ()

    def test_board_must_match_hand_size(self):
        with pytest.raises(HandSizeMismatchError, match=r"Board tile count \(2\) must match hand size \(3\)"):
            handle_peel(self._state(), "alice", PeelActionData(board_tiles=row_board("CA")))

    def test_board_must_be_connected(self):
        board = row_board("CAT")
        board[2]["top"] += 200
        with pytest.raises(InvalidBoardError, match="orthogonal connection"):
            handle_peel(self._state(), "alice", PeelActionData(board_tiles=board))

    def test_pool_must_cover_every_player(self):
        with pytest.raises(InsufficientTilesError, match="Call BANANAS"):
            handle_peel(self._state(pool="Q"), "alice", PeelActionData(board_tiles=row_board("CAT")))

    def test_eliminated_player_cannot_peel(self):
        state = create_room_state([create_player("alice", hand="CAT", is_out=True)], pool="QRS")
        with pytest.raises(StaleActionError):
            handle_peel(state, "alice", PeelActionData(board_tiles=row_board("CAT")))

    def test_not_while_inspecting(self):
        state = create_room_state(
            [create_player("alice", hand="CAT"), create_player("bob", hand="DOGS")],
            inspection=Inspection(candidate_id="bob", judges=("alice",)),
        )
        with pytest.raises(StaleActionError):
            handle_peel(state, "alice", PeelActionData(board_tiles=row_board("CAT")))


class TestHandleDump:
    def test_swaps_one_for_three(self, rng):
        state = create_room_state([create_player("alice", hand="AB")], pool="WXYZ")

        result = handle_dump(state, "alice", DumpActionData(letter="a", client_tile_id="tile-9"), rng)

        player = result.new_state.players["alice"]
        assert player.hand_size == 4
        assert player.hand[0] == "B"
        assert result.new_state.pool.size == 2
        assert result.new_state.tiles_in_circulation() == 6

        dump_event = result.events[0]
        assert isinstance(dump_event, DumpReceivedEvent)
        assert dump_event.target == "player_alice"
        assert dump_event.dumped_letter == "A"
        assert dump_event.client_tile_id == "tile-9"
        assert list(player.hand[1:]) == dump_event.tiles
        assert isinstance(result.events[1], RoomStateUpdatedEvent)

    def test_dumped_letter_can_come_back(self, rng):
        state = create_room_state([create_player("alice", hand="A")], pool="XYZ")

        new_state = handle_dump(state, "alice", DumpActionData(letter="A"), rng).new_state

        assert Counter(new_state.players["alice"].hand) + Counter(new_state.pool.tiles) == Counter("AXYZ")

    def test_letter_must_be_in_hand(self, rng):
        state = create_room_state([create_player("alice", hand="AB")], pool="WXYZ")
        with pytest.raises(TileNotInHandError, match="currently in your hand"):
            handle_dump(state, "alice", DumpActionData(letter="Q"), rng)

    def test_pool_needs_three_tiles(self, rng):
        state = create_room_state([create_player("alice", hand="AB")], pool="WX")
        with pytest.raises(InsufficientTilesError, match="Not enough tiles left to dump!"):
            handle_dump(state, "alice", DumpActionData(letter="A"), rng)


class TestHandleBananas:
    def _endgame(self, **bob):
        return create_room_state(
            [
                create_player("alice", hand="CAT"),
                create_player("bob", hand="DOG", **bob),
                create_player("carol", hand="EEL"),
            ],
            pool="Z",
        )

    def test_opens_inspection(self, rng):
        result = handle_bananas(self._endgame(), "alice", BananasActionData(board_tiles=row_board("tac")), rng)

        new_state = result.new_state
        assert new_state.status == RoomStatus.INSPECTING
        assert new_state.inspection.candidate_id == "alice"
        assert new_state.inspection.judges == ("bob", "carol")
        assert [t.letter for t in new_state.inspection.board] == ["T", "A", "C"]
        assert len(result.events) == 1
        assert result.events[0].room.inspecting_player == "alice"

    def test_disconnected_players_do_not_judge(self, rng):
        result = handle_bananas(
            self._endgame(connected=False), "alice", BananasActionData(board_tiles=row_board("CAT")), rng
        )
        assert result.new_state.inspection.judges == ("carol",)

    def test_no_judges_wins_immediately(self, rng):
        state = create_room_state(
            [create_player("alice", hand="CAT"), create_player("bob", hand="DOG", is_out=True)],
        )

        result = handle_bananas(state, "alice", BananasActionData(board_tiles=row_board("CAT")), rng)

        assert result.new_state.status == RoomStatus.WAITING
        game_over = result.events[-1]
        assert isinstance(game_over, GameOverEvent)
        assert game_over.winner_id == "alice"
        assert game_over.message == "Alice is the true WINNER!"

    def test_too_early(self, rng):
        state = create_room_state(
            [create_player("alice", hand="CAT"), create_player("bob", hand="DOG")],
            pool="XY",
        )
        with pytest.raises(BananasTooEarlyError, match="Not enough tiles have been peeled"):
            handle_bananas(state, "alice", BananasActionData(board_tiles=row_board("CAT")), rng)

    def test_board_size_must_match(self, rng):
        with pytest.raises(HandSizeMismatchError, match="does not match your hand size"):
            handle_bananas(self._endgame(), "alice", BananasActionData(board_tiles=row_board("CATS")), rng)

    def test_board_letters_must_match(self, rng):
        with pytest.raises(InvalidBoardError, match="does not match the tiles in your hand"):
            handle_bananas(self._endgame(), "alice", BananasActionData(board_tiles=row_board("COT")), rng)

    def test_malformed_board(self, rng):
        board = row_board("CAT")
        del board[1]["left"]
        with pytest.raises(InvalidBoardError, match="Invalid board data for inspection"):
            handle_bananas(self._endgame(), "alice", BananasActionData(board_tiles=board), rng)


class TestHandleInspectionVote:
    def _inspecting(self, votes=None):
        return create_room_state(
            [
                create_player("alice", hand="CAT"),
                create_player("bob", hand="DOG"),
                create_player("carol", hand="EEL"),
                create_player("dave", hand="FIG"),
            ],
            pool="Z",
            inspection=Inspection(
                candidate_id="alice",
                board=sanitize_inspection_board(row_board("CAT")),
                judges=("bob", "carol", "dave"),
                votes=votes or {},
            ),
        )

    def test_vote_recorded_while_pending(self, rng):
        result = handle_inspection_vote(self._inspecting(), "bob", VoteActionData(vote=Vote.VALID), rng)

        assert result.new_state.status == RoomStatus.INSPECTING
        assert result.new_state.inspection.votes == {"bob": Vote.VALID}
        assert [type(e) for e in result.events] == [RoomStateUpdatedEvent]

    def test_valid_majority_ends_game(self, rng):
        state = self._inspecting({"bob": Vote.VALID})

        result = handle_inspection_vote(state, "dave", VoteActionData(vote=Vote.VALID), rng)

        assert result.new_state.status == RoomStatus.WAITING
        game_over = result.events[-1]
        assert isinstance(game_over, GameOverEvent)
        assert game_over.target == "all"
        assert game_over.winner_name == "Alice"
        assert game_over.votes == {"bob": Vote.VALID, "dave": Vote.VALID}

    def test_rotten_majority_eliminates_candidate(self, rng):
        state = self._inspecting({"bob": Vote.ROTTEN})

        result = handle_inspection_vote(state, "carol", VoteActionData(vote=Vote.ROTTEN), rng)

        new_state = result.new_state
        assert new_state.status == RoomStatus.PLAYING
        assert new_state.inspection is None
        alice = new_state.players["alice"]
        assert alice.is_out
        assert alice.hand == ()
        assert Counter(new_state.pool.tiles) == Counter("ZCAT")
        assert new_state.tiles_in_circulation() == state.tiles_in_circulation()

        rotten = result.events[-2]
        assert isinstance(rotten, RottenBananaDeclaredEvent)
        assert (rotten.rotten_id, rotten.rotten_name) == ("alice", "Alice")
        assert isinstance(result.events[-1], RoomStateUpdatedEvent)

    @pytest.mark.parametrize(
        ("voter", "votes", "code"),
        [
            ("alice", None, GameErrorCode.SELF_VOTE),
            ("erin", None, GameErrorCode.NOT_A_JUDGE),
            ("bob", {"bob": Vote.VALID}, GameErrorCode.ALREADY_VOTED),
        ],
    )
    def test_rejected_votes(self, rng, voter, votes, code):
        with pytest.raises(InvalidVoteError) as exc_info:
            handle_inspection_vote(self._inspecting(votes), voter, VoteActionData(vote=Vote.VALID), rng)
        assert exc_info.value.code == code

    def test_no_inspection(self, rng):
        state = create_room_state([create_player("alice"), create_player("bob")])
        with pytest.raises(StaleActionError):
            handle_inspection_vote(state, "bob", VoteActionData(vote=Vote.VALID), rng)


class TestHandleBoardStateUpdate:
    def test_stores_sanitized_board(self):
        state = create_room_state([create_player("alice", hand="CAT")])

        result = handle_board_state_update(state, "alice", BoardStateActionData(tiles=client_tiles("cat")))

        assert result.events == []
        assert [t.letter for t in result.new_state.players["alice"].board_tiles] == ["C", "A", "T"]

    def test_unchanged_board_keeps_state(self):
        state = create_room_state([create_player("alice", hand="CAT")])
        stored = handle_board_state_update(state, "alice", BoardStateActionData(tiles=client_tiles("CAT"))).new_state

        result = handle_board_state_update(stored, "alice", BoardStateActionData(tiles=client_tiles("CAT")))

        assert result.new_state is None

    def test_count_mismatch_ignored(self):
        state = create_room_state([create_player("alice", hand="CAT")])
        with pytest.raises(StaleActionError):
            handle_board_state_update(state, "alice", BoardStateActionData(tiles=client_tiles("CA")))

    def test_empty_hand_accepts_any_board(self):
        state = create_room_state([create_player("alice")], status=RoomStatus.WAITING)
        result = handle_board_state_update(state, "alice", BoardStateActionData(tiles=client_tiles("AB")))
        assert len(result.new_state.players["alice"].board_tiles) == 2

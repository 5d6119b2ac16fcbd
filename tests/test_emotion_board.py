import asyncio

from conftest import store_index, store_record
from emotion_sync.models.core import EmotionInput, TransactionState
from emotion_sync.services.emotion_board import EmotionBoard, context_label, validate_input


def _seed(client) -> None:
    store_record(client, 'a', category='happy', context='kitchen', owner='0xAAA', created_at=300)
    store_record(client, 'b', category='calm', context='living_room', owner='0xbbb', created_at=200)
    store_record(client, 'c', category='happy', context='bedroom', owner='0xccc', created_at=100)
    store_index(client, ['a', 'b', 'c'])


def test_refresh_search_and_statistics(client, make_engine) -> None:
    _seed(client)
    board = EmotionBoard(make_engine())

    asyncio.run(board.refresh())
    assert [record.id for record in board.records] == ['a', 'b', 'c']

    board.search_query = 'LIVING'
    assert [record.id for record in board.filtered()] == ['b']
    board.search_query = '0xaaa'
    assert [record.id for record in board.filtered()] == ['a']
    board.search_query = '  '
    assert len(board.filtered()) == 3

    assert board.statistics() == {
        'total': 3,
        'categories': {'happy': 2, 'calm': 1},
        'contexts': {'kitchen': 1, 'living_room': 1, 'bedroom': 1}
    }


def test_validation_at_the_boundary() -> None:
    assert validate_input(EmotionInput()) is None
    assert validate_input(EmotionInput(category='furious')).startswith('Unknown emotion category')
    assert validate_input(EmotionInput(context='garage')).startswith('Unknown context')
    assert validate_input(EmotionInput(intensity=0)) == 'Intensity must be between 1 and 10'
    assert validate_input(EmotionInput(intensity=11)) == 'Intensity must be between 1 and 10'
    assert validate_input(EmotionInput(intensity=True)) == 'Intensity must be a whole number'
    assert context_label('home_office') == 'home office'


def test_invalid_draft_never_reaches_the_store(client, make_engine) -> None:
    board = EmotionBoard(make_engine())
    board.draft = EmotionInput(intensity=42)

    result = asyncio.run(board.submit())
    assert not result.success
    assert client.calls == []


def test_successful_submit_clears_draft_once_idle(client, make_engine) -> None:
    board = EmotionBoard(make_engine())
    board.engine.reporter.success_delay = 0.2
    board.open_create()
    board.draft = EmotionInput(category='anxious', intensity=8, context='home_office')

    async def main():
        result = await board.submit()
        shown = (board.status.status, board.show_create, board.draft.category)
        await asyncio.wait_for(board.engine.reporter.wait_idle(), timeout=1)
        return result, shown

    result, shown = asyncio.run(main())
    assert result.success
    assert shown == ('success', True, 'anxious')
    assert [record.category for record in board.records] == ['anxious']
    assert board.show_create is False
    assert board.draft == EmotionInput()
    assert board.status.visible is False


def test_failed_submit_keeps_draft(client, make_engine) -> None:
    client.failing_writes.add('record_')
    board = EmotionBoard(make_engine())
    board.open_create()
    board.draft = EmotionInput(category='sad', intensity=2, context='bathroom')

    async def main():
        result = await board.submit()
        await asyncio.wait_for(board.engine.reporter.wait_idle(), timeout=1)
        return result

    result = asyncio.run(main())
    assert not result.success
    assert board.show_create is True
    assert board.draft.category == 'sad'


def test_draft_clears_only_after_refreshed_view(client, make_engine) -> None:
    client.read_delays['index'] = 0.05
    board = EmotionBoard(make_engine())
    board.open_create()
    board.draft = EmotionInput(category='focused', intensity=6, context='home_office')
    at_idle = []

    def on_status(event):
        if event.state is TransactionState.IDLE:
            at_idle.append((board.draft, [record.category for record in board.records]))

    board.engine.reporter.subscribe(on_status)

    async def main():
        result = await board.submit()
        await asyncio.wait_for(board.engine.reporter.wait_idle(), timeout=1)
        return result

    assert asyncio.run(main()).success
    assert at_idle == [(EmotionInput(), ['focused'])]

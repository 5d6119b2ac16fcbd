"""
MCP Interface Layer using fastmcp for recording and browsing emotion observations.
"""
from typing import Any, Dict, List

from fastmcp import FastMCP

from emotion_sync.models.core import EmotionInput
from emotion_sync.services.emotion_board import EmotionBoard
from emotion_sync.services.sync_engine import SyncEngine
from emotion_sync.utils.config import config
from emotion_sync.utils.health_check import get_system_info
from emotion_sync.utils.logging_config import get_logger

logger = get_logger(__name__)

# Initialize FastMCP application
mcp = FastMCP('Emotion Sync')
board = EmotionBoard(SyncEngine())


def _record_to_dict(record) -> Dict[str, Any]:
    return {
        'id': record.id,
        'category': record.category,
        'intensity': record.intensity,
        'created_at': record.created_at,
        'owner': record.owner,
        'context': record.context
    }


@mcp.tool()
async def list_emotions(query: str = '') -> List[Dict[str, Any]]:
    """List recorded emotions, newest first.

    Args:
        query: Optional case-insensitive filter on category, context or owner

    Returns:
        List of emotion records
    """
    await board.refresh()
    board.search_query = query or ''
    result = [_record_to_dict(record) for record in board.filtered()]

    logger.debug(f'MCP list returned {len(result)} emotions')
    return result


@mcp.tool()
async def record_emotion(category: str, intensity: int, context: str) -> Dict[str, Any]:
    """Record a new emotion observation.

    Args:
        category: Emotion category (happy, sad, neutral, excited, calm, anxious, focused, relaxed)
        intensity: Intensity from 1 to 10
        context: Where it was felt (living_room, bedroom, kitchen, home_office, bathroom, outdoor)

    Returns:
        Transaction status and the stored record id on success
    """
    board.draft = EmotionInput(category=category, intensity=intensity, context=context)
    result = await board.submit()
    if not result.success:
        logger.warning(f'MCP record_emotion failed: {result.message}')

    return {
        'success': result.success,
        'message': result.message,
        'id': result.record.id if result.record else None,
        'status': board.status.to_dict()
    }


@mcp.tool()
async def emotion_statistics() -> Dict[str, Any]:
    """Count recorded emotions per category and per context.

    Returns:
        Totals per category and context
    """
    await board.refresh()
    return board.statistics()


@mcp.tool()
async def check_availability() -> Dict[str, Any]:
    """Check whether the backing store is reachable.

    Returns:
        Availability flag and the reported status
    """
    available = await board.engine.check_availability()
    return {'available': available, 'status': board.status.to_dict()}


@mcp.tool()
async def system_info() -> Dict[str, Any]:
    """Report the effective configuration and the key-value store health.

    Returns:
        Service name, configuration and health status
    """
    return await get_system_info(board.engine.client)


if __name__ == '__main__':
    transport = config.mcp.transport
    host = config.mcp.host
    port = config.mcp.port
    mcp.run(transport=transport, host=host, port=port)

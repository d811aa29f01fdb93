"""
starcup.schemas
~~~~~~~~~~~~~~~
Pydantic schemas and models for the API.
"""
from starcup.schemas.api_response import ApiResponse, error_response
from starcup.schemas.vote_interactions import (
    CreateRoomData,
    RoomEvent,
    RoomInfoData,
    RoomSnapshot,
    Track,
    VoteMessage,
    VoteUrlData,
    WinnerData,
)

# Call model_rebuild to resolve forward references in generic Pydantic models.
ApiResponse.model_rebuild()

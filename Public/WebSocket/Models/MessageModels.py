# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from typing   import Annotated, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, StrictBool, TypeAdapter

# JSON sayısı olmalı, "5" gibi string'ler kabul edilmez
PositiveId = Annotated[int, Field(gt=0, strict=True)]
Seconds    = Annotated[float, Field(ge=0, allow_inf_nan=False)]

class _Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

class JoinMessage(_Envelope):
    type    : Literal["join"]
    partyId : PositiveId
    userId  : PositiveId

class SyncMessage(_Envelope):
    type        : Literal["sync"]
    partyId     : PositiveId
    currentTime : Seconds
    isPlaying   : StrictBool

class ChatMessageIn(_Envelope):
    type    : Literal["chat"]
    partyId : PositiveId
    content : str
    userId  : PositiveId | None = None

class LeaveMessage(_Envelope):
    type    : Literal["leave"]
    partyId : PositiveId
    userId  : PositiveId | None = None

class PingMessage(_Envelope):
    type : Literal["ping"]

class GetStateMessage(_Envelope):
    type : Literal["get_state"]

InboundMessage = Annotated[
    Union[JoinMessage, SyncMessage, ChatMessageIn, LeaveMessage, PingMessage, GetStateMessage],
    Field(discriminator="type")
]

inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)

def decode_message(raw: str | bytes) -> InboundMessage:
    """Gelen JSON çerçevesini tek seferde tipli mesaja çevir.

    Geçersiz JSON, bilinmeyen `type` veya eksik alan `pydantic.ValidationError` fırlatır.
    """
    return inbound_adapter.validate_json(raw)

# ! ----------------------------------------» REST gövdeleri

class CreatePartyRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    creatorId : PositiveId
    animeId   : PositiveId
    episodeId : PositiveId
    isPublic  : StrictBool = True

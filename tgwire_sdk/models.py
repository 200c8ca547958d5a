"""Pydantic data models for the Bot API objects this client parses.

Only the response shapes and the objects returned by the typed
:class:`~tgwire_sdk.api.Api` methods are modelled here; request payloads are
plain dicts so they can carry :class:`~tgwire_sdk.input_file.InputFile`
values anywhere.  Models found inside a payload are serialized by alias with
``None`` fields omitted.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ResponseParameters(BaseModel):
    """Contains information about why a request was unsuccessful."""

    migrate_to_chat_id: Optional[int] = None
    retry_after: Optional[int] = None

    model_config = {"populate_by_name": True}


class User(BaseModel):
    """This object represents a Telegram user or bot."""

    id: int
    is_bot: bool
    first_name: str
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None
    can_join_groups: Optional[bool] = None
    can_read_all_group_messages: Optional[bool] = None
    supports_inline_queries: Optional[bool] = None

    model_config = {"populate_by_name": True}


class Chat(BaseModel):
    """This object represents a chat."""

    id: int
    type: str
    title: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    model_config = {"populate_by_name": True}


class MessageEntity(BaseModel):
    """This object represents one special entity in a text message. For example, hashtags, usernames, URLs, etc."""

    type: str
    offset: int
    length: int
    url: Optional[str] = None
    user: Optional["User"] = None
    language: Optional[str] = None

    model_config = {"populate_by_name": True}


class PhotoSize(BaseModel):
    """One size of a photo or a file / sticker thumbnail."""

    file_id: str
    file_unique_id: str
    width: int
    height: int
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Document(BaseModel):
    """This object represents a general file (as opposed to photos, voice messages and audio files)."""

    file_id: str
    file_unique_id: str
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Message(BaseModel):
    """This object represents a message."""

    message_id: int
    date: int
    chat: "Chat"
    from_field: Optional["User"] = Field(None, alias="from")
    sender_chat: Optional["Chat"] = None
    reply_to_message: Optional["Message"] = None
    edit_date: Optional[int] = None
    media_group_id: Optional[str] = None
    text: Optional[str] = None
    entities: Optional[List["MessageEntity"]] = None
    document: Optional["Document"] = None
    photo: Optional[List["PhotoSize"]] = None
    caption: Optional[str] = None
    caption_entities: Optional[List["MessageEntity"]] = None

    model_config = {"populate_by_name": True}


class MessageId(BaseModel):
    """This object represents a unique message identifier."""

    message_id: int

    model_config = {"populate_by_name": True}


class File(BaseModel):
    """A file ready to be downloaded via ``<api_root>/file/bot<token>/<file_path>``."""

    file_id: str
    file_unique_id: str
    file_size: Optional[int] = None
    file_path: Optional[str] = None

    model_config = {"populate_by_name": True}


class WebhookInfo(BaseModel):
    """Contains information about the current status of a webhook."""

    url: str
    has_custom_certificate: bool
    pending_update_count: int
    ip_address: Optional[str] = None
    last_error_date: Optional[int] = None
    last_error_message: Optional[str] = None
    max_connections: Optional[int] = None
    allowed_updates: Optional[List[str]] = None

    model_config = {"populate_by_name": True}


class InlineKeyboardButton(BaseModel):
    """One button of an inline keyboard. You **must** use exactly one of the optional fields."""

    text: str
    url: Optional[str] = None
    callback_data: Optional[str] = None
    switch_inline_query: Optional[str] = None
    switch_inline_query_current_chat: Optional[str] = None
    pay: Optional[bool] = None

    model_config = {"populate_by_name": True}


class InlineKeyboardMarkup(BaseModel):
    """An inline keyboard that appears right next to the message it belongs to."""

    inline_keyboard: List[List["InlineKeyboardButton"]]

    model_config = {"populate_by_name": True}


class BotCommand(BaseModel):
    """This object represents a bot command."""

    command: str
    description: str

    model_config = {"populate_by_name": True}


class CallbackQuery(BaseModel):
    """An incoming callback query from a callback button in an inline keyboard."""

    id: str
    from_field: "User" = Field(..., alias="from")
    message: Optional["Message"] = None
    inline_message_id: Optional[str] = None
    chat_instance: str
    data: Optional[str] = None

    model_config = {"populate_by_name": True}


class Update(BaseModel):
    """An incoming update. At most **one** of the optional parameters can be present in any given update."""

    update_id: int
    message: Optional["Message"] = None
    edited_message: Optional["Message"] = None
    channel_post: Optional["Message"] = None
    edited_channel_post: Optional["Message"] = None
    callback_query: Optional["CallbackQuery"] = None

    model_config = {"populate_by_name": True}

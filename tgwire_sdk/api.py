"""Api — typed, snake_case facade over the raw Bot API call engine.

Each public method corresponds to one Bot API endpoint, builds its payload
from the arguments that are not ``None`` and delegates to
:meth:`~tgwire_sdk.client.ApiClient.call_api`.  Methods that return a
well-known object parse it into a pydantic model; the rest return the raw
``result`` value.  Any endpoint not covered here is reachable through
:attr:`Api.raw`::

    api = Api(token)
    me = await api.get_me()
    await api.raw.setChatTitle({"chat_id": -100123, "title": "News"})
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from tgwire_core.config import load_settings
from tgwire_sdk.abort import AbortSignal
from tgwire_sdk.client import ApiClient, RawApi, WebhookReplyEnvelope
from tgwire_sdk.input_file import InputFile
from tgwire_sdk.models import (
    BotCommand,
    File,
    InlineKeyboardMarkup,
    Message,
    MessageEntity,
    MessageId,
    Update,
    User,
    WebhookInfo,
)
from tgwire_sdk.options import ApiClientOptions
from tgwire_sdk.transformers import Transformer

ChatId = Union[int, str]
FileInput = Union[InputFile, str]
ReplyMarkup = Union[InlineKeyboardMarkup, Dict[str, Any]]


def _payload(**fields: Any) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


class Api:
    """Bot API client with one method per endpoint.

    Args:
        token: The bot token.
        options: :class:`ApiClientOptions` or a mapping of its fields.
        webhook_reply_envelope: See :class:`~tgwire_sdk.client.ApiClient`.
    """

    def __init__(
        self,
        token: str,
        options: Union[ApiClientOptions, Mapping[str, Any], None] = None,
        webhook_reply_envelope: Optional[WebhookReplyEnvelope] = None,
    ) -> None:
        self._client = ApiClient(token, options, webhook_reply_envelope)
        self._token = token
        self.raw = RawApi(self._client)

    @classmethod
    def from_env(cls, dotenv_path: str | None = None, **overrides: Any) -> "Api":
        """Create an :class:`Api` from ``TGWIRE_*`` environment variables.

        Raises:
            EnvironmentError: If ``TGWIRE_BOT_TOKEN`` is not set.
        """
        token = load_settings(dotenv_path).bot_token
        if not token:
            raise EnvironmentError("TGWIRE_BOT_TOKEN environment variable is not set or is empty.")
        return cls(token, ApiClientOptions.from_env(dotenv_path, **overrides))

    # ------------------------------------------------------------------
    #  Transformers
    # ------------------------------------------------------------------

    @property
    def installed_transformers(self) -> Tuple[Transformer, ...]:
        return self._client.installed_transformers

    def use(self, *transformers: Transformer) -> "Api":
        self._client.use(*transformers)
        return self

    def file_url(self, file_path: str) -> str:
        """Download URL for the ``file_path`` of a :class:`~tgwire_sdk.models.File`."""
        options = self._client.options
        return options.build_file_url(options.api_root, self._token, file_path)

    async def _call(self, method: str, payload: Optional[Dict[str, Any]] = None, signal: Optional[AbortSignal] = None) -> Any:
        return await self._client.call_api(method, payload, signal)

    # ------------------------------------------------------------------
    #  Getting updates
    # ------------------------------------------------------------------

    async def get_updates(self, offset: Optional[int] = None, limit: Optional[int] = None, timeout: Optional[int] = None, allowed_updates: Optional[List[str]] = None, signal: Optional[AbortSignal] = None) -> List[Update]:
        """Receive incoming updates using long polling."""
        result = await self._call("getUpdates", _payload(offset=offset, limit=limit, timeout=timeout, allowed_updates=allowed_updates), signal)
        return [Update.model_validate(update) for update in result]

    async def set_webhook(self, url: str, certificate: Optional[InputFile] = None, ip_address: Optional[str] = None, max_connections: Optional[int] = None, allowed_updates: Optional[List[str]] = None, drop_pending_updates: Optional[bool] = None, secret_token: Optional[str] = None, signal: Optional[AbortSignal] = None) -> bool:
        """Specify a URL and receive incoming updates via an outgoing webhook."""
        return await self._call("setWebhook", _payload(url=url, certificate=certificate, ip_address=ip_address, max_connections=max_connections, allowed_updates=allowed_updates, drop_pending_updates=drop_pending_updates, secret_token=secret_token), signal)

    async def delete_webhook(self, drop_pending_updates: Optional[bool] = None, signal: Optional[AbortSignal] = None) -> bool:
        """Remove webhook integration to switch back to getUpdates."""
        return await self._call("deleteWebhook", _payload(drop_pending_updates=drop_pending_updates), signal)

    async def get_webhook_info(self, signal: Optional[AbortSignal] = None) -> WebhookInfo:
        """Get current webhook status."""
        return WebhookInfo.model_validate(await self._call("getWebhookInfo", None, signal))

    # ------------------------------------------------------------------
    #  Bot
    # ------------------------------------------------------------------

    async def get_me(self, signal: Optional[AbortSignal] = None) -> User:
        """A simple method for testing your bot's auth token."""
        return User.model_validate(await self._call("getMe", None, signal))

    async def log_out(self, signal: Optional[AbortSignal] = None) -> bool:
        """Log out from the cloud Bot API server before launching the bot locally."""
        return await self._call("logOut", None, signal)

    async def close(self, signal: Optional[AbortSignal] = None) -> bool:
        """Close the bot instance before moving it from one local server to another."""
        return await self._call("close", None, signal)

    async def set_my_commands(self, commands: List[Union[BotCommand, Dict[str, str]]], signal: Optional[AbortSignal] = None) -> bool:
        """Change the list of the bot's commands."""
        return await self._call("setMyCommands", _payload(commands=commands), signal)

    # ------------------------------------------------------------------
    #  Messages
    # ------------------------------------------------------------------

    async def send_message(self, chat_id: ChatId, text: str, parse_mode: Optional[str] = None, entities: Optional[List[MessageEntity]] = None, disable_notification: Optional[bool] = None, reply_to_message_id: Optional[int] = None, reply_markup: Optional[ReplyMarkup] = None, signal: Optional[AbortSignal] = None) -> Message:
        """Send a text message."""
        result = await self._call("sendMessage", _payload(chat_id=chat_id, text=text, parse_mode=parse_mode, entities=entities, disable_notification=disable_notification, reply_to_message_id=reply_to_message_id, reply_markup=reply_markup), signal)
        return _message(result)

    async def forward_message(self, chat_id: ChatId, from_chat_id: ChatId, message_id: int, disable_notification: Optional[bool] = None, signal: Optional[AbortSignal] = None) -> Message:
        """Forward a message of any kind."""
        result = await self._call("forwardMessage", _payload(chat_id=chat_id, from_chat_id=from_chat_id, message_id=message_id, disable_notification=disable_notification), signal)
        return _message(result)

    async def copy_message(self, chat_id: ChatId, from_chat_id: ChatId, message_id: int, caption: Optional[str] = None, parse_mode: Optional[str] = None, disable_notification: Optional[bool] = None, reply_markup: Optional[ReplyMarkup] = None, signal: Optional[AbortSignal] = None) -> MessageId:
        """Copy a message without a link to the original."""
        result = await self._call("copyMessage", _payload(chat_id=chat_id, from_chat_id=from_chat_id, message_id=message_id, caption=caption, parse_mode=parse_mode, disable_notification=disable_notification, reply_markup=reply_markup), signal)
        return MessageId.model_validate(result)

    async def send_photo(self, chat_id: ChatId, photo: FileInput, caption: Optional[str] = None, parse_mode: Optional[str] = None, disable_notification: Optional[bool] = None, reply_to_message_id: Optional[int] = None, reply_markup: Optional[ReplyMarkup] = None, signal: Optional[AbortSignal] = None) -> Message:
        """Send a photo."""
        result = await self._call("sendPhoto", _payload(chat_id=chat_id, photo=photo, caption=caption, parse_mode=parse_mode, disable_notification=disable_notification, reply_to_message_id=reply_to_message_id, reply_markup=reply_markup), signal)
        return _message(result)

    async def send_audio(self, chat_id: ChatId, audio: FileInput, caption: Optional[str] = None, duration: Optional[int] = None, performer: Optional[str] = None, title: Optional[str] = None, thumbnail: Optional[FileInput] = None, reply_markup: Optional[ReplyMarkup] = None, signal: Optional[AbortSignal] = None) -> Message:
        """Send an audio file to be displayed in the music player."""
        result = await self._call("sendAudio", _payload(chat_id=chat_id, audio=audio, caption=caption, duration=duration, performer=performer, title=title, thumbnail=thumbnail, reply_markup=reply_markup), signal)
        return _message(result)

    async def send_document(self, chat_id: ChatId, document: FileInput, thumbnail: Optional[FileInput] = None, caption: Optional[str] = None, parse_mode: Optional[str] = None, disable_content_type_detection: Optional[bool] = None, reply_markup: Optional[ReplyMarkup] = None, signal: Optional[AbortSignal] = None) -> Message:
        """Send a general file."""
        result = await self._call("sendDocument", _payload(chat_id=chat_id, document=document, thumbnail=thumbnail, caption=caption, parse_mode=parse_mode, disable_content_type_detection=disable_content_type_detection, reply_markup=reply_markup), signal)
        return _message(result)

    async def send_video(self, chat_id: ChatId, video: FileInput, duration: Optional[int] = None, width: Optional[int] = None, height: Optional[int] = None, thumbnail: Optional[FileInput] = None, caption: Optional[str] = None, supports_streaming: Optional[bool] = None, reply_markup: Optional[ReplyMarkup] = None, signal: Optional[AbortSignal] = None) -> Message:
        """Send a video file."""
        result = await self._call("sendVideo", _payload(chat_id=chat_id, video=video, duration=duration, width=width, height=height, thumbnail=thumbnail, caption=caption, supports_streaming=supports_streaming, reply_markup=reply_markup), signal)
        return _message(result)

    async def send_animation(self, chat_id: ChatId, animation: FileInput, duration: Optional[int] = None, thumbnail: Optional[FileInput] = None, caption: Optional[str] = None, reply_markup: Optional[ReplyMarkup] = None, signal: Optional[AbortSignal] = None) -> Message:
        """Send an animation (GIF or H.264/MPEG-4 AVC video without sound)."""
        result = await self._call("sendAnimation", _payload(chat_id=chat_id, animation=animation, duration=duration, thumbnail=thumbnail, caption=caption, reply_markup=reply_markup), signal)
        return _message(result)

    async def send_voice(self, chat_id: ChatId, voice: FileInput, caption: Optional[str] = None, duration: Optional[int] = None, reply_markup: Optional[ReplyMarkup] = None, signal: Optional[AbortSignal] = None) -> Message:
        """Send an audio file to be displayed as a playable voice message."""
        result = await self._call("sendVoice", _payload(chat_id=chat_id, voice=voice, caption=caption, duration=duration, reply_markup=reply_markup), signal)
        return _message(result)

    async def send_video_note(self, chat_id: ChatId, video_note: FileInput, duration: Optional[int] = None, length: Optional[int] = None, thumbnail: Optional[FileInput] = None, reply_markup: Optional[ReplyMarkup] = None, signal: Optional[AbortSignal] = None) -> Message:
        """Send a rounded square video message."""
        result = await self._call("sendVideoNote", _payload(chat_id=chat_id, video_note=video_note, duration=duration, length=length, thumbnail=thumbnail, reply_markup=reply_markup), signal)
        return _message(result)

    async def send_media_group(self, chat_id: ChatId, media: List[Dict[str, Any]], disable_notification: Optional[bool] = None, reply_to_message_id: Optional[int] = None, signal: Optional[AbortSignal] = None) -> List[Message]:
        """Send a group of photos, videos, documents or audios as an album.

        Each item of *media* is an InputMedia dict such as
        ``{"type": "photo", "media": InputFile(...)}``.
        """
        result = await self._call("sendMediaGroup", _payload(chat_id=chat_id, media=media, disable_notification=disable_notification, reply_to_message_id=reply_to_message_id), signal)
        return [_message(item) for item in result]

    async def send_location(self, chat_id: ChatId, latitude: float, longitude: float, live_period: Optional[int] = None, reply_markup: Optional[ReplyMarkup] = None, signal: Optional[AbortSignal] = None) -> Message:
        """Send a point on the map."""
        result = await self._call("sendLocation", _payload(chat_id=chat_id, latitude=latitude, longitude=longitude, live_period=live_period, reply_markup=reply_markup), signal)
        return _message(result)

    async def send_chat_action(self, chat_id: ChatId, action: str, signal: Optional[AbortSignal] = None) -> bool:
        """Tell the user that something is happening on the bot's side."""
        return await self._call("sendChatAction", _payload(chat_id=chat_id, action=action), signal)

    async def edit_message_text(self, text: str, chat_id: Optional[ChatId] = None, message_id: Optional[int] = None, inline_message_id: Optional[str] = None, parse_mode: Optional[str] = None, reply_markup: Optional[ReplyMarkup] = None, signal: Optional[AbortSignal] = None) -> Union[Message, bool]:
        """Edit text and game messages."""
        result = await self._call("editMessageText", _payload(chat_id=chat_id, message_id=message_id, inline_message_id=inline_message_id, text=text, parse_mode=parse_mode, reply_markup=reply_markup), signal)
        return _message(result)

    async def edit_message_media(self, media: Dict[str, Any], chat_id: Optional[ChatId] = None, message_id: Optional[int] = None, inline_message_id: Optional[str] = None, reply_markup: Optional[ReplyMarkup] = None, signal: Optional[AbortSignal] = None) -> Union[Message, bool]:
        """Edit animation, audio, document, photo, or video messages."""
        result = await self._call("editMessageMedia", _payload(chat_id=chat_id, message_id=message_id, inline_message_id=inline_message_id, media=media, reply_markup=reply_markup), signal)
        return _message(result)

    async def delete_message(self, chat_id: ChatId, message_id: int, signal: Optional[AbortSignal] = None) -> bool:
        """Delete a message."""
        return await self._call("deleteMessage", _payload(chat_id=chat_id, message_id=message_id), signal)

    # ------------------------------------------------------------------
    #  Files, chats, and callbacks
    # ------------------------------------------------------------------

    async def get_file(self, file_id: str, signal: Optional[AbortSignal] = None) -> File:
        """Get basic info about a file and prepare it for downloading."""
        return File.model_validate(await self._call("getFile", _payload(file_id=file_id), signal))

    async def set_chat_photo(self, chat_id: ChatId, photo: InputFile, signal: Optional[AbortSignal] = None) -> bool:
        """Set a new profile photo for the chat."""
        return await self._call("setChatPhoto", _payload(chat_id=chat_id, photo=photo), signal)

    async def answer_callback_query(self, callback_query_id: str, text: Optional[str] = None, show_alert: Optional[bool] = None, url: Optional[str] = None, cache_time: Optional[int] = None, signal: Optional[AbortSignal] = None) -> bool:
        """Send an answer to a callback query sent from an inline keyboard."""
        return await self._call("answerCallbackQuery", _payload(callback_query_id=callback_query_id, text=text, show_alert=show_alert, url=url, cache_time=cache_time), signal)


def _message(result: Any) -> Any:
    # A webhook reply or an inline-message edit yields ``True`` instead of a message.
    if isinstance(result, dict):
        return Message.model_validate(result)
    return result

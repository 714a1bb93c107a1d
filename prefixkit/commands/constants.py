"""Names shared by the command system."""

from enum import Enum


class ArgumentMatch(str, Enum):
    """How an argument acquires its phrase from the parsed content."""

    PHRASE = "phrase"
    FLAG = "flag"
    OPTION = "option"
    REST = "rest"
    SEPARATE = "separate"
    TEXT = "text"
    CONTENT = "content"
    REST_CONTENT = "restContent"
    NONE = "none"


class ArgumentType(str, Enum):
    """Names of the built-in casters registered on every TypeResolver."""

    STRING = "string"
    LOWERCASE = "lowercase"
    UPPERCASE = "uppercase"
    CHAR_CODES = "charCodes"
    NUMBER = "number"
    INTEGER = "integer"
    BIGINT = "bigint"
    EMOJINT = "emojint"
    URL = "url"
    DATE = "date"
    COLOR = "color"
    USER = "user"
    USERS = "users"
    MEMBER = "member"
    MEMBERS = "members"
    RELEVANT = "relevant"
    RELEVANTS = "relevants"
    CHANNEL = "channel"
    CHANNELS = "channels"
    TEXT_CHANNEL = "textChannel"
    TEXT_CHANNELS = "textChannels"
    VOICE_CHANNEL = "voiceChannel"
    VOICE_CHANNELS = "voiceChannels"
    CATEGORY_CHANNEL = "categoryChannel"
    CATEGORY_CHANNELS = "categoryChannels"
    NEWS_CHANNEL = "newsChannel"
    NEWS_CHANNELS = "newsChannels"
    STAGE_CHANNEL = "stageChannel"
    STAGE_CHANNELS = "stageChannels"
    THREAD_CHANNEL = "threadChannel"
    THREAD_CHANNELS = "threadChannels"
    FORUM_CHANNEL = "forumChannel"
    FORUM_CHANNELS = "forumChannels"
    ROLE = "role"
    ROLES = "roles"
    EMOJI = "emoji"
    EMOJIS = "emojis"
    GUILD = "guild"
    GUILDS = "guilds"
    MESSAGE = "message"
    GUILD_MESSAGE = "guildMessage"
    RELEVANT_MESSAGE = "relevantMessage"
    INVITE = "invite"
    USER_MENTION = "userMention"
    MEMBER_MENTION = "memberMention"
    CHANNEL_MENTION = "channelMention"
    ROLE_MENTION = "roleMention"
    EMOJI_MENTION = "emojiMention"
    COMMAND_ALIAS = "commandAlias"
    COMMAND = "command"
    INHIBITOR = "inhibitor"
    LISTENER = "listener"


class CommandHandlerEvents(str, Enum):
    """Lifecycle events emitted by the command handler."""

    MESSAGE_BLOCKED = "message_blocked"
    MESSAGE_INVALID = "message_invalid"
    COMMAND_BLOCKED = "command_blocked"
    COMMAND_STARTED = "command_started"
    COMMAND_FINISHED = "command_finished"
    COMMAND_CANCELLED = "command_cancelled"
    COMMAND_INVALID = "command_invalid"
    COMMAND_TIMEOUT = "command_timeout"
    COMMAND_BREAKOUT = "command_breakout"
    COMMAND_LOCKED = "command_locked"
    COOLDOWN = "cooldown"
    MISSING_PERMISSIONS = "missing_permissions"
    IN_PROMPT = "in_prompt"
    ERROR = "error"


class BuiltInReasons(str, Enum):
    CLIENT = "client"
    BOT = "bot"
    OWNER = "owner"
    GUILD = "guild"
    DM = "dm"

"""
Module cog: guild-scoped configuration of the moderation modules.

Every subcommand lives under ``/module`` and goes through ModuleService,
the same interface the matchers read from. All commands require the Manage
Server permission and reply ephemerally. Configuration mistakes
(ArgumentError) are shown to the operator as they are.
"""

from typing import List, Optional

import discord
from discord import Option
from discord.ext import commands

from caretaker.datatypes.action_datatypes import ACTION_FRIENDLY_NAMES, Action, ActionKind
from caretaker.datatypes.discord_datatypes import ChannelID, GuildID
from caretaker.datatypes.exclusion_datatypes import Exclusion
from caretaker.datatypes.module_datatypes import MODULE_DESCRIPTIONS, ModuleKind
from caretaker.errors import ArgumentError, NotSupportedInDM
from caretaker.modules.settings import settings_class_for
from caretaker.services.module_service import ModuleService
from caretaker.util.format_utils import NOTIFY_VARIABLES
from caretaker.util.logger import get_logger

logger = get_logger("module_commands")

MODULE_CHOICES = [
    discord.OptionChoice(name=kind.value, value=kind.value) for kind in ModuleKind
]
ACTION_CHOICES = [
    discord.OptionChoice(name=ACTION_FRIENDLY_NAMES[kind], value=kind.value) for kind in ActionKind
]


def _format_settings(kind: ModuleKind, values: List[tuple]) -> str:
    if not values:
        return f"`{kind}` has no settings"
    cls = settings_class_for(kind)
    lines = [f"Settings of `{kind}`:"]
    for name, value in values:
        lines.append(
            f"- `{name}` = `{value}` (default `{cls.default_for(name)}`): {cls.description_for(name)}"
        )
    return "\n".join(lines)


class ModuleCog(commands.Cog):
    """Slash commands to configure modules, settings, exclusions and actions."""

    module = discord.SlashCommandGroup(
        "module",
        "Configure the moderation modules of this server",
        default_member_permissions=discord.Permissions(manage_guild=True),
    )

    def __init__(self, discord_bot_instance: discord.Bot, service: ModuleService) -> None:
        self.discord_bot_instance = discord_bot_instance
        self.service = service
        logger.info("[MODULE CMDS] Module cog loaded")

    def _has_manage_permission(self, ctx: discord.ApplicationContext) -> bool:
        if not isinstance(ctx.user, discord.Member):
            return False
        return ctx.user.guild_permissions.manage_guild

    async def _guild_for(self, ctx: discord.ApplicationContext) -> Optional[GuildID]:
        """Resolve the guild and check permissions, replying on failure."""
        if not ctx.guild_id:
            await ctx.respond(str(NotSupportedInDM()), ephemeral=True)
            return None
        if not self._has_manage_permission(ctx):
            await ctx.respond("You need Manage Server permission.", ephemeral=True)
            return None
        return GuildID(ctx.guild_id)

    # ------------------------------------------------------------------
    # Enabled
    # ------------------------------------------------------------------

    @module.command(name="enabled-get", description="Show whether modules are enabled")
    async def enabled_get(
        self,
        ctx: discord.ApplicationContext,
        module: Option(str, "Module to show, all modules if not given", choices=MODULE_CHOICES, required=False, default=None),  # type: ignore
    ) -> None:
        guild_id = await self._guild_for(ctx)
        if guild_id is None:
            return

        if module is not None:
            kind = ModuleKind(module)
            state = await self.service.cache.get(guild_id, kind)
            await ctx.respond(
                f"`{kind}` is {'enabled' if state.enabled else 'disabled'}", ephemeral=True
            )
            return

        modules = await self.service.cache.get_all_for_guild(guild_id)
        lines = [
            f"{'✅' if state.enabled else '❌'} `{kind}`: {MODULE_DESCRIPTIONS[kind]}"
            for kind, state in modules.items()
        ]
        await ctx.respond("\n".join(lines), ephemeral=True)

    @module.command(name="enabled-set", description="Enable or disable a module")
    async def enabled_set(
        self,
        ctx: discord.ApplicationContext,
        module: Option(str, "Module to change", choices=MODULE_CHOICES),  # type: ignore
        value: Option(bool, "Whether the module is enabled"),  # type: ignore
    ) -> None:
        guild_id = await self._guild_for(ctx)
        if guild_id is None:
            return

        kind = ModuleKind(module)
        await self.service.set_enabled(guild_id, kind, value)
        await ctx.respond(f"`{kind}` is now {'enabled' if value else 'disabled'}", ephemeral=True)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @module.command(name="setting-get", description="Show the settings of a module")
    async def setting_get(
        self,
        ctx: discord.ApplicationContext,
        module: Option(str, "Module to show", choices=MODULE_CHOICES),  # type: ignore
    ) -> None:
        guild_id = await self._guild_for(ctx)
        if guild_id is None:
            return

        kind = ModuleKind(module)
        try:
            settings = await self.service.get_settings(guild_id, kind)
        except ArgumentError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        await ctx.respond(_format_settings(kind, settings.get_all()), ephemeral=True)

    @module.command(name="setting-set", description="Change a setting of a module")
    async def setting_set(
        self,
        ctx: discord.ApplicationContext,
        module: Option(str, "Module to change", choices=MODULE_CHOICES),  # type: ignore
        name: Option(str, "Setting name"),  # type: ignore
        value: Option(str, "New value"),  # type: ignore
    ) -> None:
        guild_id = await self._guild_for(ctx)
        if guild_id is None:
            return

        kind = ModuleKind(module)
        try:
            settings = await self.service.set_setting(guild_id, kind, name, value)
        except ArgumentError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        await ctx.respond(f"`{kind}` setting `{name}` is now `{settings.get(name)}`", ephemeral=True)

    @module.command(name="setting-reset", description="Reset a setting of a module to its default")
    async def setting_reset(
        self,
        ctx: discord.ApplicationContext,
        module: Option(str, "Module to change", choices=MODULE_CHOICES),  # type: ignore
        name: Option(str, "Setting name"),  # type: ignore
    ) -> None:
        guild_id = await self._guild_for(ctx)
        if guild_id is None:
            return

        kind = ModuleKind(module)
        try:
            settings = await self.service.reset_setting(guild_id, kind, name)
        except ArgumentError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        await ctx.respond(f"`{kind}` setting `{name}` reset to `{settings.get(name)}`", ephemeral=True)

    # ------------------------------------------------------------------
    # Exclusions
    # ------------------------------------------------------------------

    @module.command(name="exclusion-get", description="Show the users and roles a module ignores")
    async def exclusion_get(
        self,
        ctx: discord.ApplicationContext,
        module: Option(str, "Module to show", choices=MODULE_CHOICES),  # type: ignore
    ) -> None:
        guild_id = await self._guild_for(ctx)
        if guild_id is None:
            return

        kind = ModuleKind(module)
        exclusions = await self.service.get_exclusions(guild_id, kind)
        if exclusions.is_empty():
            await ctx.respond(f"`{kind}` has no exclusions", ephemeral=True)
            return

        lines = [f"Exclusions of `{kind}`:"] + [f"- {exclusion.mention()}" for exclusion in exclusions]
        await ctx.respond(
            "\n".join(lines), ephemeral=True, allowed_mentions=discord.AllowedMentions.none()
        )

    @module.command(name="exclusion-add", description="Make a module ignore a user or a role")
    async def exclusion_add(
        self,
        ctx: discord.ApplicationContext,
        module: Option(str, "Module to change", choices=MODULE_CHOICES),  # type: ignore
        user: Option(discord.User, "User to exclude", required=False, default=None),  # type: ignore
        role: Option(discord.Role, "Role to exclude", required=False, default=None),  # type: ignore
    ) -> None:
        guild_id = await self._guild_for(ctx)
        if guild_id is None:
            return

        exclusion = await self._exclusion_from(ctx, user, role)
        if exclusion is None:
            return

        kind = ModuleKind(module)
        try:
            await self.service.add_exclusion(guild_id, kind, exclusion)
        except ArgumentError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        await ctx.respond(
            f"`{kind}` now ignores {exclusion.mention()}",
            ephemeral=True,
            allowed_mentions=discord.AllowedMentions.none(),
        )

    @module.command(name="exclusion-remove", description="Stop a module from ignoring a user or a role")
    async def exclusion_remove(
        self,
        ctx: discord.ApplicationContext,
        module: Option(str, "Module to change", choices=MODULE_CHOICES),  # type: ignore
        user: Option(discord.User, "User to remove", required=False, default=None),  # type: ignore
        role: Option(discord.Role, "Role to remove", required=False, default=None),  # type: ignore
    ) -> None:
        guild_id = await self._guild_for(ctx)
        if guild_id is None:
            return

        exclusion = await self._exclusion_from(ctx, user, role)
        if exclusion is None:
            return

        kind = ModuleKind(module)
        try:
            await self.service.remove_exclusion(guild_id, kind, exclusion)
        except ArgumentError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        await ctx.respond(
            f"`{kind}` no longer ignores {exclusion.mention()}",
            ephemeral=True,
            allowed_mentions=discord.AllowedMentions.none(),
        )

    async def _exclusion_from(self, ctx, user, role) -> Optional[Exclusion]:
        if (user is None) == (role is None):
            await ctx.respond("Give exactly one of `user` or `role`", ephemeral=True)
            return None
        if user is not None:
            return Exclusion.user(user.id)
        return Exclusion.role(role.id)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    @module.command(name="action-get", description="Show the actions a module runs on a match")
    async def action_get(
        self,
        ctx: discord.ApplicationContext,
        module: Option(str, "Module to show", choices=MODULE_CHOICES),  # type: ignore
    ) -> None:
        guild_id = await self._guild_for(ctx)
        if guild_id is None:
            return

        kind = ModuleKind(module)
        actions = await self.service.get_actions(guild_id, kind)
        if not actions:
            await ctx.respond(f"`{kind}` has no actions", ephemeral=True)
            return

        lines = [f"Actions of `{kind}`:"] + [
            f"`{index}`: {action.kind.friendly_name}. {action.description()}"
            for index, action in enumerate(actions)
        ]
        await ctx.respond("\n".join(lines), ephemeral=True)

    @module.command(name="action-add", description="Add an action to a module")
    async def action_add(
        self,
        ctx: discord.ApplicationContext,
        module: Option(str, "Module to change", choices=MODULE_CHOICES),  # type: ignore
        action: Option(str, "What to do on a match", choices=ACTION_CHOICES),  # type: ignore
        message: Option(
            str,
            "Notify message. Placeholders: " + ", ".join(f"{{{name}}}" for name in NOTIFY_VARIABLES),
            required=False,
            default=None,
        ),  # type: ignore
        channel: Option(discord.TextChannel, "Notify channel, the message's channel if not given", required=False, default=None),  # type: ignore
    ) -> None:
        guild_id = await self._guild_for(ctx)
        if guild_id is None:
            return

        kind = ModuleKind(module)
        try:
            if ActionKind(action) is ActionKind.REMOVE_MESSAGE:
                new_action = Action.remove_message()
            else:
                channel_id = ChannelID.from_discord(channel) if channel is not None else None
                new_action = Action.notify(message, channel_id)
            await self.service.add_action(guild_id, kind, new_action)
        except ArgumentError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        await ctx.respond(f"Added to `{kind}`: {new_action.description()}", ephemeral=True)

    @module.command(name="action-remove", description="Remove an action from a module")
    async def action_remove(
        self,
        ctx: discord.ApplicationContext,
        module: Option(str, "Module to change", choices=MODULE_CHOICES),  # type: ignore
        index: Option(int, "Index as shown by action-get", min_value=0),  # type: ignore
    ) -> None:
        guild_id = await self._guild_for(ctx)
        if guild_id is None:
            return

        kind = ModuleKind(module)
        try:
            removed = await self.service.remove_action(guild_id, kind, index)
        except ArgumentError as exc:
            await ctx.respond(str(exc), ephemeral=True)
            return
        await ctx.respond(f"Removed from `{kind}`: {removed.description()}", ephemeral=True)


def setup(discord_bot_instance, service: ModuleService):
    discord_bot_instance.add_cog(ModuleCog(discord_bot_instance, service))

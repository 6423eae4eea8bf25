from __future__ import annotations

import asyncio
import logging

from mailinchat.core.models import Profile, ProfileDraft, ProfileQuery, ResolvedIdentities
from mailinchat.core.protocols import ProfileDirectory
from mailinchat.sources.models import MailEnvelope


class IdentityResolver:
    def __init__(self, directory: ProfileDirectory, logger: logging.Logger | logging.LoggerAdapter):
        self.directory = directory
        self.logger = logger

    async def _find_recipients(self, aliases: list[str]) -> list[Profile]:
        if not aliases:
            return []
        return await self.directory.find(ProfileQuery(aliases=tuple(aliases)))

    @staticmethod
    def _unique(profiles: list[Profile], exclude_id: str) -> list[Profile]:
        seen: set[str] = set()
        result: list[Profile] = []
        for profile in profiles:
            if profile.id == exclude_id or profile.id in seen:
                continue
            seen.add(profile.id)
            result.append(profile)
        return result

    async def resolve(self, envelope: MailEnvelope) -> ResolvedIdentities | None:
        """Sender and recipient profiles of ``envelope``.

        Returns ``None`` when no recipient alias matches a profile. A missing
        sender profile is created from the ``from`` address. The sender never
        appears among the returned recipients.
        """
        aliases = envelope.all_aliases
        sender_profiles, recipient_profiles = await asyncio.gather(
            self.directory.find(ProfileQuery(emails=(envelope.from_address,))),
            self._find_recipients(aliases),
        )

        if not recipient_profiles:
            self.logger.info("No recipient profiles for aliases %s", aliases)
            return None

        sender_created = False
        if sender_profiles:
            sender_id = sender_profiles[0].id
        else:
            self.logger.info("Sender profile not found for %s, creating", envelope.from_address)
            created = await self.directory.create(ProfileDraft(emails=(envelope.from_address,)))
            self.logger.info("Sender profile created: %s", created.id)
            sender_id = created.id
            sender_created = True

        recipients = self._unique(recipient_profiles, exclude_id=sender_id)
        return ResolvedIdentities(sender_id=sender_id, recipients=recipients, sender_created=sender_created)

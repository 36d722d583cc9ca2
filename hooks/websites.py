"""Website list/detail hook. Websites are shown with their organisation resolved."""
import db.repositories.websites as websites_repo
from hooks.state import EntityHook


class WebsitesHook(EntityHook):
    repo = websites_repo
    noun = "website"
    ACTIONS = EntityHook.ACTIONS + ("fetch_by_organisation",)

    async def _decorate(self, items):
        return await websites_repo.with_organisations(self.store, items)

    @property
    def websites(self):
        return self.items

    @property
    def selected_website(self):
        return self.selected

    async def fetch_by_organisation(self, organisation_id: str) -> None:
        self._last_query = (self.fetch_by_organisation, (organisation_id,))
        await self._load(
            f"Failed to fetch websites for organisation {organisation_id}",
            websites_repo.by_organisation(self.store, organisation_id),
        )

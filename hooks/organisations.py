"""Organisation list/detail hook."""
import db.repositories.organisations as organisations_repo
from hooks.state import EntityHook


class OrganisationsHook(EntityHook):
    repo = organisations_repo
    noun = "organisation"

    @property
    def organisations(self):
        return self.items

    @property
    def selected_organisation(self):
        return self.selected

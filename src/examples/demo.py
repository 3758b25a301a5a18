"""
demo.py – One-shot showcase of revisions on SQLite (or $REVISIONS_DATABASE_URL).

Walks through: create → edit → edit (retention prunes v1) → navigate →
revert → save without versioning.
"""

import logging
from pprint import pprint

from revisions import Record, Revisions, on, versioned

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")


# ────────────────────────────────── 1. Concrete Record ─────────────────────────────────
@versioned(keep=2, exclude=["draft_notes"])
class Story(Record):
    title: str | None = None
    body: str | None = None
    draft_notes: str | None = None

    def _format_story(self) -> str:
        return f"\nTitle: {self.title}\n\n  {self.body}\n\n"


# ────────────────────────────────── 2. Observers ───────────────────────────────────────
@on.version_created(Story)
def log_new_version(story: Story, version):
    print(f"🆕 {story.identity()} → v{version.number}")


@on.versions_pruned(Story)
def log_pruned(story: Story, report):
    print(f"🧹 {story.identity()} pruned {report.deleted}")


# ────────────────────────────────── 3. Drive everything ────────────────────────────────
def main() -> None:
    Revisions.from_env()

    story = Story(title="Draft", body="Once upon a time…", draft_notes="tbd")
    story.save()  # v1

    story.title = "The Revisions Tale"
    story.save()  # v2

    story.body = "Once upon a time, in a database far away…"
    story.save()  # v3, v1 pruned

    print(f"\nversion_number = {story.version_number}")
    print(f"kept versions  = {story.versions.numbers()}")
    previous = story.versions.previous(story.version_number)
    print(f"previous of v{story.version_number} = v{previous.number}")
    pprint(previous.attributes(), width=80)

    story.revert_to_version(2)  # writes v4
    print(f"\nAfter revert:{story._format_story()}")

    with story.with_versioning(False):
        story.draft_notes = "not worth a version"
        story.save()
    print(f"versions after silent save = {story.versions.numbers()}")

    story.destroy()
    print(f"versions after destroy = {story.versions.numbers()}")


if __name__ == "__main__":
    main()

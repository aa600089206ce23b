from pydantic import BaseModel

_COMPONENT = """<script setup lang="ts">
// Reactive content for page: {page_id}
const {{ content }} = useCmsContent('{page_id}');
</script>

<template>
  <div>
{body}
  </div>
</template>
"""


class PortableTemplate(BaseModel):
    """Rewritten page markup carrying data-binding placeholders."""

    page_id: str
    markup: str

    def to_component(self) -> str:
        """Wrap the markup in a single-file component bound to the page content."""
        body = "\n".join("    " + line if line.strip() else "" for line in self.markup.splitlines())
        return _COMPONENT.format(page_id=self.page_id, body=body)

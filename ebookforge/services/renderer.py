# ebookforge/services/renderer.py
from jinja2 import Template

from ebookforge.models import RunState

# ---------- on-screen e-book view (swapped into the page on every poll) ----------
VIEW_TEMPLATE = Template(r"""
<div class="run" data-phase="{{ state.phase.value }}" data-running="{{ 'true' if state.is_running else 'false' }}">
  {% if state.is_running and state.message %}
    <div class="progress"><span class="spinner"></span><p>{{ state.message }}</p></div>
  {% endif %}
  {% if state.error %}
    <p class="error">{{ state.error }}</p>
  {% endif %}

  {% if ebook %}
  <article class="ebook">
    <div class="ebook-head">
      <div class="cover">
        {% if ebook.cover_image_url %}
          <img src="{{ ebook.cover_image_url }}" alt="Capa do e-book {{ ebook.title }}">
        {% else %}
          <div class="cover-placeholder pulse"></div>
        {% endif %}
        <h2 class="cover-title">{{ ebook.title }}</h2>
      </div>
      <div class="summary">
        <h2>{{ ebook.title }}</h2>
        <p class="description">{{ ebook.description }}</p>
      </div>
    </div>

    <div class="contents">
      <div class="contents-bar">
        <h3>Conteúdo do E-book</h3>
        {% if can_export %}
          <a class="download" href="{{ export_url }}" download>Baixar E-book</a>
        {% else %}
          <button class="download" type="button" disabled>Baixar E-book</button>
        {% endif %}
      </div>

      {% for ch in ebook.chapters %}
        <details class="chapter"{% if loop.first %} open{% endif %}>
          <summary>Capítulo {{ loop.index }}: {{ ch.title }}</summary>
          <div class="chapter-body">{{ ch.content }}</div>
        </details>
      {% endfor %}
      {% for _ in range(skeletons) %}
        <div class="chapter skeleton pulse"><div class="bar"></div></div>
      {% endfor %}
    </div>
  </article>
  {% endif %}
</div>
""", autoescape=True)


def render_ebook(state: RunState, export_url: str = "#") -> str:
    ebook = state.ebook
    skeletons = max(0, state.chapter_total - len(ebook.chapters)) if ebook else 0
    return VIEW_TEMPLATE.render(
        state=state,
        ebook=ebook,
        skeletons=skeletons,
        can_export=state.can_export,
        export_url=export_url,
    )

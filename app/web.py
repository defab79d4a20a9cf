"""HTML page rendering for the addon configuration page."""

from __future__ import annotations

import html
import json
from textwrap import dedent

from .config import Settings
from .models import StreamConfig


CONFIG_TEMPLATE = dedent(
    """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>__APP_NAME__ · Configuration</title>
    <style>
        :root {
            color-scheme: dark;
            font-family: 'Inter', 'Segoe UI', system-ui, -apple-system, sans-serif;
            --surface: #141414;
            --text-primary: #f5f5f5;
            --text-muted: #a6a6a6;
            --outline: #2b2b2b;
            --accent: #f5c518;
            background: #000000;
            color: var(--text-primary);
        }
        body {
            margin: 0;
            background: #000000;
        }
        main {
            max-width: 640px;
            margin: 0 auto;
            padding: 3rem 1.5rem 4rem;
        }
        header p {
            color: var(--text-muted);
        }
        .card {
            background: var(--surface);
            border: 1px solid var(--outline);
            border-radius: 20px;
            padding: 1.75rem;
        }
        label {
            display: block;
            margin-bottom: 1.25rem;
        }
        input[type="text"], select {
            width: 100%;
            margin-top: 0.4rem;
            padding: 0.6rem;
            border-radius: 10px;
            border: 1px solid var(--outline);
            background: #090909;
            color: var(--text-primary);
        }
        .url {
            word-break: break-all;
            font-family: monospace;
            color: var(--text-muted);
            margin: 1rem 0;
        }
        .actions a {
            display: inline-block;
            padding: 0.7rem 1.4rem;
            border-radius: 999px;
            background: var(--accent);
            color: #050505;
            text-decoration: none;
            font-weight: 600;
            margin-right: 0.5rem;
        }
    </style>
</head>
<body>
<main>
    <header>
        <h1>__APP_NAME__</h1>
        <p>IMDb ratings for movies, series episodes and anime, shown as a stream entry.</p>
    </header>
    <section class="card">
        <form id="config-form">
            <label>
                Stream name
                <input type="text" id="streamName" maxlength="80" />
            </label>
            <label>
                Layout
                <select id="format">
                    <option value="multiline">Multi-line</option>
                    <option value="singleline">Single line</option>
                </select>
            </label>
            <label>
                <input type="checkbox" id="showVotes" /> Show vote counts
            </label>
        </form>
        <div class="url" id="manifest-url"></div>
        <div class="actions">
            <a id="install-link" href="#">Install</a>
            <a id="copy-link" href="#">Copy URL</a>
        </div>
    </section>
</main>
<script>
    (function () {
        const baseUrl = __BASE_URL_JSON__;
        const defaults = __DEFAULTS_JSON__;
        const form = document.getElementById('config-form');
        const streamName = document.getElementById('streamName');
        const layout = document.getElementById('format');
        const showVotes = document.getElementById('showVotes');

        streamName.value = defaults.streamName;
        layout.value = defaults.format;
        showVotes.checked = defaults.showVotes;

        function manifestUrl() {
            const config = {
                streamName: streamName.value.trim() || defaults.streamName,
                format: layout.value,
                showVotes: showVotes.checked,
            };
            return baseUrl + '/manifest.json?config=' + encodeURIComponent(JSON.stringify(config));
        }

        function refresh() {
            const url = manifestUrl();
            document.getElementById('manifest-url').textContent = url;
            document.getElementById('install-link').href = url.replace(/^https?:\\/\\//, 'stremio://');
        }

        document.getElementById('copy-link').addEventListener('click', function (event) {
            event.preventDefault();
            navigator.clipboard.writeText(manifestUrl());
        });
        form.addEventListener('input', refresh);
        form.addEventListener('change', refresh);
        refresh();
    })();
</script>
</body>
</html>
"""
)


def _script_json(value: object) -> str:
    return json.dumps(value).replace("</", "<\\/")


def render_config_page(settings: Settings, *, base_url: str) -> str:
    """Return the full HTML for the ``/configure`` page."""

    defaults = StreamConfig()
    defaults_json = _script_json(
        {
            "streamName": defaults.stream_name,
            "format": defaults.format,
            "showVotes": defaults.show_votes,
        }
    )

    page = CONFIG_TEMPLATE
    replacements = {
        "__APP_NAME__": html.escape(settings.app_name),
        "__BASE_URL_JSON__": _script_json(base_url.rstrip("/")),
        "__DEFAULTS_JSON__": defaults_json,
    }
    for placeholder, value in replacements.items():
        page = page.replace(placeholder, value)
    return page

import json

import pytest

from Zapp_Builder.exceptions import MalformedOutputError
from Zapp_Builder.functions import extract_code, extract_json


def test_extract_json_fenced_and_bare_agree():
    bare = '{"lib/main.dart": "void main() {}", "pubspec.yaml": "name: app"}'
    fenced = f"Here is your project:\n```json\n{bare}\n```\nEnjoy!"

    assert extract_json(fenced) == extract_json(bare)
    assert extract_json(bare)["pubspec.yaml"] == "name: app"


def test_extract_json_plain_fence_and_array():
    text = '```\n[{"action": "MODIFY_FILE", "path": "a.js", "task": "t"}]\n```'
    assert extract_json(text) == [{"action": "MODIFY_FILE", "path": "a.js", "task": "t"}]


def test_extract_json_keeps_fences_inside_file_contents():
    files = {"README.md": "# App\n\n```bash\nnpm install\n```\n", "App.js": "x"}
    fenced = "```json\n" + json.dumps(files, indent=2) + "\n```"

    assert extract_json(fenced) == extract_json(json.dumps(files)) == files


def test_extract_json_single_line_fence():
    assert extract_json('```json{"a.js": "x"}```') == {"a.js": "x"}


@pytest.mark.parametrize("text", ["not json at all", "```json\n{broken\n```", ""])
def test_extract_json_rejects_invalid(text):
    with pytest.raises(MalformedOutputError, match="invalid JSON"):
        extract_json(text)


def test_extract_code_strips_fence():
    text = "```dart\nvoid main() {\n  runApp(App());\n}\n```"
    assert extract_code(text) == "void main() {\n  runApp(App());\n}"


def test_extract_code_without_fence_is_trimmed_verbatim():
    assert extract_code("\n  const App = () => null;\n") == "const App = () => null;"


def test_extract_code_is_idempotent_on_fenced_block():
    text = "```jsx\nconst App = () => <div />;\n```"
    once = extract_code(text)
    assert extract_code(once) == once


def test_extract_code_missing_closing_fence():
    assert extract_code("```js\nconst a = 1;") == "const a = 1;"


@pytest.mark.parametrize("text", ["", "   ", "```\n```"])
def test_extract_code_rejects_empty(text):
    with pytest.raises(MalformedOutputError):
        extract_code(text)

import json


STACK_LABELS = {
    "react-native": "React Native",
    "flutter": "Flutter",
}


# -------------------
# Agent instructions (system role per stage)
# -------------------

initial_project_instructions = """
You are a senior mobile project architect and UI/UX designer.
You answer with a single raw JSON object and nothing else.
"""

planner_instructions = """
You are a mobile project planner. You turn change requests into an ordered list of file actions.
You answer with a single raw JSON array and nothing else.
"""

executor_instructions = """
You are an expert mobile programmer executing exactly one step of a larger plan.
You answer with the complete source code of one file and nothing else.
"""

flutter_preview_instructions = """
You are a Flutter preview generator. You answer with raw Dart code only.
"""

rn_preview_instructions = """
You are an expert web developer converting React Native screens to browser JSX.
You answer with raw JSX code only.
"""

blueprint_instructions = """
You are an expert mobile engineer writing single-file screens.
You answer with raw source code only, without markdown fences or explanations.
"""


VISION_STYLE_RULES = """
## 🎨 DESIGN LANGUAGE (MANDATORY)
- Ultra-minimal, glassy, inspired by Apple VisionOS.
- Blurred backgrounds and translucency (glassmorphism).
- Rounded corners, subtle gradients, generous spacing, modern typography.
- A clean, restrained color palette.
"""

REACT_NATIVE_RULES = """
## 📱 CRITICAL REQUIREMENTS for React Native
- You MUST use 'react-native-paper' for core UI elements (Button, TextInput, Card, ...) and style them to fit the glassy look.
- The package.json MUST list "react-native-paper" and "react-native-blur" in its dependencies.
- Use the <BlurView> component from 'react-native-blur' for translucent backgrounds.
"""

FLUTTER_RULES = """
## 📱 CRITICAL REQUIREMENTS for Flutter
- The MaterialApp widget MUST include `debugShowCheckedModeBanner: false,`.
- Use `BackdropFilter` with `ImageFilter.blur` to achieve the glassmorphism effect.
"""


def _stack_rules(stack):
    if stack == "flutter":
        return FLUTTER_RULES
    return REACT_NATIVE_RULES


def _stack_label(stack):
    return STACK_LABELS.get(stack, stack)


# -------------------
# Multi-file pipeline
# -------------------

def initial_project_prompt(prompt, stack):
    """Prompt for the first generation of a whole project."""
    return f"""
You are an expert {_stack_label(stack)} project architect. A user wants to build an application from this description:
"{prompt}"

Generate a complete, production-ready starting file structure for it.
{VISION_STYLE_RULES}
{_stack_rules(stack)}
## 📦 OUTPUT
Return a single JSON object where every key is a full file path and every value is the complete source code of that file.
The output MUST be only the raw JSON object.
"""


def planner_prompt(prompt, file_tree, stack):
    """Prompt turning a change request into CREATE_FILE / MODIFY_FILE actions."""
    example = [
        {"action": "CREATE_FILE", "path": "src/services/authService.js",
         "task": "Create a new file that wraps the authentication calls."},
        {"action": "MODIFY_FILE", "path": "src/screens/HomeScreen.js",
         "task": "Import authService and add a logout button."},
    ]
    return f"""
You are an expert {_stack_label(stack)} project architect. A user wants to change their project:
"{prompt}"

Current file structure:
{file_tree}

Create a step-by-step plan and return it as a JSON array of actions.
- Valid actions are: "CREATE_FILE", "MODIFY_FILE".
- Every action has "action", "path" and "task" (one concise sentence another AI will execute).
- Order matters: actions run one after another.
- Do NOT suggest adding, removing or upgrading dependencies.

Example response:
{json.dumps(example, indent=2)}
"""


def _render_file(vfile):
    path = vfile["path"]
    return f"\n--- START OF FILE: {path} ---\n{vfile['content']}\n--- END OF FILE: {path} ---"


def executor_prompt(task, relevant_files, file_tree):
    """Prompt asking for the full new content of one file."""
    if relevant_files:
        sources = "\n".join(_render_file(f) for f in relevant_files)
    else:
        sources = "\n(No existing file matched this task; write the file from scratch.)"

    return f"""
You are executing a single step of a larger plan.
**Task:** {task}

**STYLING RULE:** keep the minimal, glassy, VisionOS-inspired design. For React Native use 'react-native-paper' and 'react-native-blur'. For Flutter use 'BackdropFilter'.

Full directory tree for context:
{file_tree}

Full contents of the relevant file(s) to read or modify:
{sources}

Return ONLY the complete, updated source code of the single file you were asked to create or modify.
Do not include markdown fences, file paths or explanations.
"""


def flutter_preview_prompt(filesystem):
    """Prompt folding a whole Flutter project into one runnable main.dart."""
    return f"""
Combine this multi-file Flutter project into a single, runnable 'main.dart' for a browser preview environment such as DartPad.

Entire project file system:
{json.dumps(filesystem, indent=2)}

CRITICAL RULES:
- Everything must live in one file; inline every widget, model and service it needs.
- Only import packages available in DartPad (dart:* and package:flutter/*).
- The MaterialApp widget MUST include `debugShowCheckedModeBanner: false,`.
- For every placeholder image you MUST use `Image.network('https://picsum.photos/seed/picsum/WIDTH/HEIGHT')`, replacing WIDTH and HEIGHT. Never use `via.placeholder.com` or `Image.asset`; browsers block them.
- Only use icons from the standard 'Icons' class.
- Output ONLY the raw Dart code.
"""


def rn_to_browser_prompt(react_native_code):
    """Prompt converting one React Native screen to dependency-free browser JSX."""
    return f"""
Convert the following React Native code into one self-contained block of JSX that runs directly in a browser with React and Tailwind CSS.

CRITICAL RULES:
1. Output ONLY the raw JSX code. No markdown fences.
2. NO imports and NO exports.
3. Define the component as a constant named "App", e.g. `const App = () => {{ ... }};`.
4. Use Tailwind CSS classes for ALL styling.
5. The root element must be a `<div>` with `className="w-full h-full bg-white overflow-y-auto"`.

React Native code to convert:
```jsx
{react_native_code}
```
"""


# -------------------
# Single-file (blueprint) pipeline
# -------------------

def rn_blueprint_prompt(prompt):
    return f"""
Write a single-file React Native screen for this request:
"{prompt}"
{VISION_STYLE_RULES}
{REACT_NATIVE_RULES}
Export the screen as the default export. Return ONLY the raw source code.
"""


def rn_blueprint_modify_prompt(prompt, code):
    return f"""
Here is an existing single-file React Native screen:
```jsx
{code}
```

Apply this change request to it:
"{prompt}"

Keep everything that the request does not touch. Keep the glassy VisionOS design.
Return ONLY the complete, updated source code.
"""


def flutter_single_file_prompt(prompt):
    return f"""
Write a complete, runnable single-file Flutter app (main.dart) for this request:
"{prompt}"
{VISION_STYLE_RULES}
{FLUTTER_RULES}
- For every placeholder image use `Image.network('https://picsum.photos/seed/picsum/WIDTH/HEIGHT')`.
- Only use icons from the standard 'Icons' class.
Return ONLY the raw Dart code.
"""


def flutter_single_file_modify_prompt(prompt, code):
    return f"""
Here is an existing single-file Flutter app:
```dart
{code}
```

Apply this change request to it:
"{prompt}"

Keep everything that the request does not touch, keep `debugShowCheckedModeBanner: false,` and the glassy design.
Return ONLY the complete, updated Dart code.
"""

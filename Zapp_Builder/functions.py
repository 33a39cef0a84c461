"""
Functions module for Zapp Builder
Response extractors, the agent runner and the generation pipelines
"""

import json
import re
from agents import Runner

from . import models
from .models import TokenManager
from .exceptions import InputValidationError, MalformedOutputError, UpstreamServiceError
from .filesystem import (
    filesystem_from_files, file_tree, pick_active_file,
    relevant_files, write_file
)
from .prompts import (
    initial_project_prompt, planner_prompt, executor_prompt,
    flutter_preview_prompt, rn_to_browser_prompt,
    rn_blueprint_prompt, rn_blueprint_modify_prompt,
    flutter_single_file_prompt, flutter_single_file_modify_prompt
)

STACKS = ("react-native", "flutter")
PLAN_ACTIONS = ("CREATE_FILE", "MODIFY_FILE")

token_manager = TokenManager(models.settings.tokens_per_minute)

_FENCED_JSON = re.compile(r"```(?:json)?[ \t]*\n(.*?)\n```", re.DOTALL)
_WHOLE_FENCE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


# -------------------
# Response Extractors
# -------------------

def extract_json(text):
    """Parse the fenced JSON block of a model answer, or the whole answer.

    Raises MalformedOutputError when neither parses.
    """
    if not isinstance(text, str):
        text = str(text) if text is not None else ""

    match = _FENCED_JSON.search(text) or _WHOLE_FENCE.fullmatch(text.strip())
    candidate = match.group(1) if match else text.strip()
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        print(f"❌ Failed to parse JSON: {e}. Preview: {text[:200]}...")
        raise MalformedOutputError("Received invalid JSON from AI model.") from e


def extract_code(text):
    """Strip a surrounding markdown fence and return the trimmed code."""
    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        first_newline = cleaned.find("\n")
        if first_newline == -1:
            cleaned = cleaned.strip("`")
        else:
            closing = cleaned.rfind("```")
            end = closing if closing > first_newline else len(cleaned)
            cleaned = cleaned[first_newline + 1:end]
        cleaned = cleaned.strip()

    if not cleaned:
        raise MalformedOutputError("AI model returned empty code.")
    return cleaned


def build_agent_input(prompt, images=None):
    """Plain prompt, or a single user message carrying the prompt and its images."""
    if not images:
        return prompt

    content = [{"type": "input_text", "text": prompt}]
    for image_url in images:
        content.append({"type": "input_image", "image_url": image_url, "detail": "auto"})
    return [{"role": "user", "content": content}]


async def run_agent_with_token_limit(agent, input_data):
    """Single-turn model call returning the raw text answer."""
    print(f"🚀 Running {agent.name} agent...")
    print("-" * 60)
    token_manager.add_tokens(token_manager.count_tokens(input_data))
    try:
        result = await Runner.run(agent, input=input_data)
    except Exception as e:
        print(f"\n❌ {agent.name} agent error: {type(e).__name__}: {str(e)}")
        raise UpstreamServiceError(f"{agent.name} agent failed: {e}") from e

    output = result.final_output if result.final_output is not None else ""
    output = str(output)
    token_manager.add_tokens(token_manager.count_tokens(output))
    print(f"✅ {agent.name} agent finished ({len(output)} characters)")
    return output


# -------------------
# Multi-file pipeline
# -------------------

async def generate_initial_project(prompt, stack, images=None, run_agent=run_agent_with_token_limit):
    """Flow 1: one call producing the whole project."""
    raw = await run_agent(
        models.initial_project_agent,
        build_agent_input(initial_project_prompt(prompt, stack), images)
    )
    filesystem = filesystem_from_files(extract_json(raw))
    active_file = pick_active_file(filesystem)
    print(f"✅ Generated {len(filesystem)} files, active file: {active_file}")
    return filesystem, active_file


def parse_plan(plan):
    if not isinstance(plan, list):
        raise MalformedOutputError("Expected a JSON array of plan actions.")

    actions = []
    for step in plan:
        if not isinstance(step, dict):
            raise MalformedOutputError(f"Invalid plan step: {step!r}")
        action = step.get("action")
        path = step.get("path")
        task = step.get("task")
        if action not in PLAN_ACTIONS:
            raise MalformedOutputError(f"Unknown plan action: {action!r}")
        if not isinstance(path, str) or not path.strip():
            raise MalformedOutputError(f"Plan step without a file path: {step!r}")
        if not isinstance(task, str) or not task.strip():
            raise MalformedOutputError(f"Plan step without a task: {step!r}")
        actions.append({"action": action, "path": path.strip(), "task": task})
    return actions


async def apply_change_plan(prompt, stack, filesystem, active_file=None, images=None,
                            run_agent=run_agent_with_token_limit):
    """Flow 2: plan, then execute every action in order against a copy of the filesystem."""
    updated = dict(filesystem)
    tree = file_tree(updated)

    raw_plan = await run_agent(
        models.planner_agent,
        build_agent_input(planner_prompt(prompt, tree, stack), images)
    )
    actions = parse_plan(extract_json(raw_plan))
    print(f"📋 Plan has {len(actions)} action(s)")

    for step in actions:
        # Reads the already-updated filesystem so later steps see earlier writes.
        context_files = relevant_files(updated, step["path"])
        if not context_files:
            print(f"⚠️ No relevant files for {step['path']}")

        raw_code = await run_agent(
            models.executor_agent,
            executor_prompt(step["task"], context_files, tree)
        )
        write_file(updated, step["path"], extract_code(raw_code))
        active_file = step["path"]
        print(f"📝 {step['action']}: {step['path']}")

    return updated, active_file


async def derive_preview_code(stack, filesystem, active_file, run_agent=run_agent_with_token_limit):
    """Flow 3: single-file preview of the project (Flutter) or of the active screen (React Native)."""
    if stack == "flutter":
        raw = await run_agent(models.flutter_preview_agent, flutter_preview_prompt(filesystem))
        return extract_code(raw)

    vfile = filesystem.get(active_file) if active_file else None
    source = vfile["content"] if vfile else ""
    if not source:
        return None
    raw = await run_agent(models.rn_preview_agent, rn_to_browser_prompt(source))
    return extract_code(raw)


async def run_generation(prompt, stack, filesystem=None, active_file=None, images=None,
                         preview_only=False, run_agent=run_agent_with_token_limit):
    """Pick the flow from the request and always finish with a preview."""
    if stack not in STACKS:
        raise InputValidationError(f"Unsupported stack: {stack}")

    if filesystem is None:
        if preview_only:
            raise InputValidationError("previewOnly requires a virtualFilesystem")
        filesystem, active_file = await generate_initial_project(
            prompt, stack, images, run_agent=run_agent
        )
    elif not preview_only:
        filesystem, active_file = await apply_change_plan(
            prompt, stack, filesystem, active_file, images, run_agent=run_agent
        )

    preview_code = await derive_preview_code(stack, filesystem, active_file, run_agent=run_agent)

    return {
        "virtualFilesystem": filesystem,
        "activeFile": active_file,
        "activeFilePreviewCode": preview_code,
    }


# -------------------
# Single-file (blueprint) pipeline
# -------------------

async def run_single_file_generation(prompt, stack, code=None, run_agent=run_agent_with_token_limit):
    """Flutter keeps one main.dart; React Native keeps a blueprint plus its browser version."""
    if stack == "flutter":
        if code is not None and not isinstance(code, str):
            raise InputValidationError("Flutter code must be a string")
        if code:
            user_prompt = flutter_single_file_modify_prompt(prompt, code)
        else:
            user_prompt = flutter_single_file_prompt(prompt)
        raw = await run_agent(models.blueprint_agent, user_prompt)
        return {"code": extract_code(raw)}

    if stack != "react-native":
        raise InputValidationError(f"Unsupported stack: {stack}")
    if code is not None and not isinstance(code, dict):
        raise InputValidationError("React Native code must be an object with 'rn' and 'next'")

    blueprint = (code or {}).get("rn")
    if blueprint:
        user_prompt = rn_blueprint_modify_prompt(prompt, blueprint)
    else:
        user_prompt = rn_blueprint_prompt(prompt)
    rn_code = extract_code(await run_agent(models.blueprint_agent, user_prompt))

    # The browser version is always re-derived from the blueprint.
    next_code = extract_code(await run_agent(models.rn_preview_agent, rn_to_browser_prompt(rn_code)))
    return {"code": {"rn": rn_code, "next": next_code}}

"""Tool definitions sent to the model, in Anthropic format."""

_EXPLANATION = {
    "type": "string",
    "description": "One sentence explanation as to why this tool is being used",
}

TOOL_SCHEMAS: list[dict] = [
    {
        "name": "edit_file",
        "description": "Edit a file in the code editor",
        "input_schema": {
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "The path of the file to edit",
                },
                "content": {
                    "type": "string",
                    "description": "The new content of the file",
                },
            },
            "required": ["file_path", "content"],
        },
    },
    {
        "name": "create_file",
        "description": "Create a new file in the code editor",
        "input_schema": {
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "The path of the file to create",
                },
                "content": {
                    "type": "string",
                    "description": "The content of the new file",
                },
            },
            "required": ["file_path", "content"],
        },
    },
    {
        "name": "delete_file",
        "description": "Delete a file from the code editor",
        "input_schema": {
            "type": "object",
            "properties": {
                "file_path": {
                    "type": "string",
                    "description": "The path of the file to delete",
                },
            },
            "required": ["file_path"],
        },
    },
    {
        "name": "read_file",
        "description": "Read the contents of a file",
        "input_schema": {
            "type": "object",
            "properties": {
                "target_file": {
                    "type": "string",
                    "description": "The path of the file to read",
                },
                "start_line_one_indexed": {
                    "type": "integer",
                    "description": "The one-indexed line number to start reading from (inclusive)",
                },
                "end_line_one_indexed_inclusive": {
                    "type": "integer",
                    "description": "The one-indexed line number to end reading at (inclusive)",
                },
                "should_read_entire_file": {
                    "type": "boolean",
                    "description": "Whether to read the entire file",
                },
                "explanation": _EXPLANATION,
            },
            "required": [
                "target_file",
                "should_read_entire_file",
                "start_line_one_indexed",
                "end_line_one_indexed_inclusive",
            ],
        },
    },
    {
        "name": "list_dir",
        "description": "List the contents of a directory",
        "input_schema": {
            "type": "object",
            "properties": {
                "relative_workspace_path": {
                    "type": "string",
                    "description": "Path to list contents of, relative to the workspace root",
                },
                "explanation": _EXPLANATION,
            },
            "required": ["relative_workspace_path"],
        },
    },
    {
        "name": "grep_search",
        "description": "Fast text-based regex search that finds exact pattern matches within files or directories",
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The regex pattern to search for",
                },
                "include_pattern": {
                    "type": "string",
                    "description": "Glob pattern for files to include",
                },
                "exclude_pattern": {
                    "type": "string",
                    "description": "Glob pattern for files to exclude",
                },
                "case_sensitive": {
                    "type": "boolean",
                    "description": "Whether the search should be case sensitive",
                },
                "explanation": _EXPLANATION,
            },
            "required": ["query"],
        },
    },
    {
        "name": "file_search",
        "description": "Fast file search based on fuzzy matching against file path",
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Fuzzy filename to search for",
                },
                "explanation": _EXPLANATION,
            },
            "required": ["query"],
        },
    },
    {
        "name": "codebase_search",
        "description": "Find snippets of code from the codebase most relevant to the search query",
        "input_schema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query to find relevant code",
                },
                "target_directories": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Glob patterns for directories to search over",
                },
                "explanation": _EXPLANATION,
            },
            "required": ["query"],
        },
    },
    {
        "name": "run_terminal_cmd",
        "description": "PROPOSE a command to run on behalf of the user",
        "input_schema": {
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "description": "The terminal command to execute",
                },
                "is_background": {
                    "type": "boolean",
                    "description": "Whether the command should be run in the background",
                },
                "require_user_approval": {
                    "type": "boolean",
                    "description": "Whether the user must approve the command before it is executed",
                },
                "explanation": _EXPLANATION,
            },
            "required": ["command", "is_background", "require_user_approval"],
        },
    },
    {
        "name": "web_search",
        "description": "Search the web for real-time information about any topic",
        "input_schema": {
            "type": "object",
            "properties": {
                "search_term": {
                    "type": "string",
                    "description": "The search term to look up on the web",
                },
                "explanation": _EXPLANATION,
            },
            "required": ["search_term"],
        },
    },
    {
        "name": "diff_history",
        "description": "Retrieve the history of recent changes made to files in the workspace",
        "input_schema": {
            "type": "object",
            "properties": {
                "explanation": _EXPLANATION,
            },
            "required": [],
        },
    },
    {
        "name": "reapply",
        "description": "Calls a smarter model to apply the last edit to the specified file",
        "input_schema": {
            "type": "object",
            "properties": {
                "target_file": {
                    "type": "string",
                    "description": "The relative path to the file to reapply the last edit to",
                },
            },
            "required": ["target_file"],
        },
    },
]

TOOL_NAMES = [tool["name"] for tool in TOOL_SCHEMAS]

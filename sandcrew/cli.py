"""CLI and REPL for SandCrew."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from sandcrew.config import Config
from sandcrew.constants import NO_CHANGES
from sandcrew.errors import SandCrewError
from sandcrew.git_engine import CommitRecord
from sandcrew.llm import LLM
from sandcrew.messages import AssistantMessage, ToolCallMessage, ToolResultMessage
from sandcrew.session import Session

app = typer.Typer(help="SandCrew - agentic coding over a synced git checkout")
console = Console()


class REPL:
    """Interactive REPL for SandCrew."""

    def __init__(self, session: Session):
        """Initialize REPL.

        Args:
            session: Wired session for the project
        """
        self.session = session
        self.config = session.config
        self.last_commit: Optional[CommitRecord] = None
        self.running = True

    async def start(self) -> None:
        """Start the REPL."""
        console.print(Panel.fit(
            "[bold cyan]SandCrew[/bold cyan] - agentic coding over a synced git checkout\n"
            f"Project: {self.session.project_root}\n"
            f"Model: {self.config.default_model}\n"
            f"Repository: {self.session.repo_name or 'not connected'}\n"
            "\n"
            "Type /help for commands or /quit to exit",
            border_style="cyan"
        ))

        if len(self.session.agent.log) == 1:
            self.render(self.session.agent.log.messages())

        while self.running:
            try:
                user_input = console.input("[bold cyan]sandcrew>[/bold cyan] ").strip()

                if not user_input:
                    continue

                await self.handle_input(user_input)

            except KeyboardInterrupt:
                console.print("\n[dim]Use /quit to exit[/dim]")
                continue
            except EOFError:
                break

        self.session.close()
        console.print("\n[cyan]Goodbye![/cyan]")

    async def handle_input(self, user_input: str) -> None:
        """Handle user input (command or message to the agent).

        Args:
            user_input: User input string
        """
        if user_input.startswith("/"):
            await self.handle_command(user_input)
        else:
            await self.handle_message(user_input)

    async def handle_message(self, text: str) -> None:
        agent = self.session.agent
        seen = len(agent.log)
        with console.status("[dim]Thinking...[/dim]"):
            await agent.submit(text)
        self.render(agent.log.messages()[seen + 1:])

    async def handle_command(self, command: str) -> None:
        """Handle slash command.

        Args:
            command: Command string (starting with /)
        """
        parts = command.split(maxsplit=1)
        cmd = parts[0].lower()
        args = parts[1].strip() if len(parts) > 1 else ""

        try:
            if cmd == "/help":
                self.show_help()
            elif cmd == "/quit" or cmd == "/exit":
                self.running = False
            elif cmd == "/connect":
                if not args:
                    console.print("[red]Usage: /connect owner/repo[/red]")
                    return
                with console.status(f"[dim]Cloning {args}...[/dim]"):
                    count = await self.session.connect(args)
                console.print(f"[green]Connected to {args}: loaded {count} files[/green]")
            elif cmd == "/files":
                paths = self.session.workspace.paths()
                dirty = set(self.session.workspace.ledger.dirty_paths())
                for path in paths:
                    marker = "[yellow]M[/yellow] " if path in dirty else "  "
                    console.print(f"{marker}{path}")
                console.print(f"[dim]{len(paths)} files, {len(dirty)} changed[/dim]")
            elif cmd == "/read":
                if not args:
                    console.print("[red]Usage: /read <path>[/red]")
                    return
                content = self.session.workspace.read(args)
                if content is None:
                    console.print(f"[red]File {args} does not exist[/red]")
                    return
                lexer = Syntax.guess_lexer(args, code=content)
                console.print(Syntax(content, lexer, theme="monokai", line_numbers=True))
            elif cmd == "/status":
                self.show_status()
            elif cmd == "/diff":
                engine = self.session.require_engine()
                diff = await engine.generate_diff()
                if diff == NO_CHANGES:
                    console.print(f"[dim]{diff}[/dim]")
                    return
                console.print(Syntax(diff, "diff", theme="monokai"))
                summary = engine.summarize_diff(diff)
                console.print(
                    f"[dim]{len(summary)} files changed, "
                    f"{summary.added} insertions(+), {summary.removed} deletions(-)[/dim]"
                )
            elif cmd == "/commit":
                await self.commit(args)
            elif cmd == "/branch":
                engine = self.session.require_engine()
                if not args:
                    console.print(f"[dim]Current branch: {engine.repo.current_branch()}[/dim]")
                    for branch in engine.repo.branches():
                        console.print(f"  - {branch}")
                    return
                await engine.create_branch(args)
                console.print(f"[green]Switched to branch {args}[/green]")
            elif cmd == "/push":
                engine = self.session.require_engine()
                branch = args or None
                with console.status("[dim]Pushing...[/dim]"):
                    await engine.push(branch)
                console.print(f"[green]Pushed {branch or engine.repo.current_branch()}[/green]")
            elif cmd == "/pr":
                await self.pull_request(args)
            elif cmd == "/clear":
                self.session.agent.clear()
                self.last_commit = None
                console.print("[dim]Conversation cleared[/dim]")
                self.render(self.session.agent.log.messages())
            elif cmd == "/model":
                if args:
                    try:
                        descriptor = LLM.parse_model_string(args)
                    except ValueError as e:
                        console.print(f"[red]{e}[/red]")
                        return
                    self.config.default_model = args
                    self.session.set_client(
                        LLM(descriptor, self.config.anthropic_api_key, timeout=self.config.request_timeout)
                    )
                    console.print(f"[green]Switched to model: {args}[/green]")
                else:
                    console.print(f"[dim]Current model: {self.config.default_model}[/dim]")
                    console.print("\nAvailable models:")
                    for model in LLM.list_models():
                        console.print(f"  - {model}")
            elif cmd == "/config":
                config_dict = self.config.to_dict()
                console.print(Panel(
                    "\n".join(f"{k}: {v}" for k, v in config_dict.items()),
                    title="Configuration",
                    border_style="blue"
                ))
            elif cmd == "/log":
                log_path = self.session.logger.get_log_path()
                console.print(f"[dim]Session logs: {log_path}[/dim]")
            else:
                console.print(f"[red]Unknown command: {cmd}[/red]")
                console.print("[dim]Type /help for available commands[/dim]")

        except SandCrewError as e:
            console.print(f"[red]Error: {e}[/red]")
        except Exception as e:
            console.print(f"[red]Unexpected error: {e}[/red]")
            console.print_exception()

    async def commit(self, title: str) -> None:
        engine = self.session.require_engine()
        description = ""

        if not title:
            diff = await engine.generate_diff()
            if diff == NO_CHANGES:
                console.print(f"[dim]{diff}[/dim]")
                return
            with console.status("[dim]Writing commit message...[/dim]"):
                message = await engine.generate_commit_message(diff)
            title, description = message.title, message.description

        record = await engine.commit(title, description)
        self.last_commit = record
        console.print(f"[green]Committed {record.sha[:7]} on {record.branch}: {record.title}[/green]")
        if record.description:
            console.print(f"[dim]{record.description}[/dim]")

    async def pull_request(self, title: str) -> None:
        engine = self.session.require_engine()
        repo_name = self.session.repo_name
        if not repo_name:
            console.print("[red]No GitHub repository is known for this checkout[/red]")
            return

        branch = engine.repo.current_branch() or self.config.base_branch
        if branch == self.config.base_branch:
            console.print(
                f"[red]Create a feature branch first (/branch <name>); "
                f"pull requests target {self.config.base_branch}[/red]"
            )
            return

        if not title:
            title = self.last_commit.title if self.last_commit else f"Changes from {branch}"
        body = self.last_commit.description if self.last_commit else ""

        with console.status("[dim]Pushing and opening pull request...[/dim]"):
            credential = await engine.push(branch)
            record = await engine.create_pull_request(repo_name, branch, title, body, credential)
        console.print(f"[green]Opened pull request #{record.number}: {record.url}[/green]")

    def show_status(self) -> None:
        engine = self.session.require_engine()
        table = Table(title=f"{self.session.repo_name} ({engine.repo.current_branch()})")
        table.add_column("Path")
        table.add_column("HEAD")
        table.add_column("Workdir")
        table.add_column("Stage")

        changed = [e for e in engine.compute_status() if e.is_changed]
        for entry in changed:
            table.add_row(entry.path, entry.head.value, entry.workdir.value, entry.stage.value)

        pending = self.session.workspace.ledger.dirty_paths()
        if changed:
            console.print(table)
        else:
            console.print("[dim]Checkout matches HEAD[/dim]")
        if pending:
            console.print(f"[yellow]{len(pending)} workspace changes pending sync/commit[/yellow]")

    def render(self, messages: list) -> None:
        """Print conversation messages."""
        for message in messages:
            if isinstance(message, AssistantMessage):
                console.print(Markdown(message.content))
            elif isinstance(message, ToolCallMessage):
                call = message.tool_call
                target = call.arguments.get("file_path") or call.arguments.get("target_file") or ""
                console.print(f"[dim]→ {call.name} {target}[/dim]")
            elif isinstance(message, ToolResultMessage):
                result = message.result
                if result.ok:
                    console.print(f"[dim green]  ✓ {result.message}[/dim green]")
                else:
                    console.print(f"[red]  ✗ {result.error}[/red]")

    def show_help(self) -> None:
        """Show help message."""
        help_text = """
**Available Commands:**

- `/connect owner/repo` - Clone a GitHub repository into the workspace
- `/files` - List workspace files (changed files marked M)
- `/read <path>` - Show a workspace file
- `/status` - Show the checkout status matrix
- `/diff` - Sync and show the diff against HEAD
- `/commit [title]` - Commit all changes (message generated when omitted)
- `/branch [name]` - List branches, or create/switch to one
- `/push [branch]` - Push a branch to origin
- `/pr [title]` - Push the current branch and open a pull request
- `/clear` - Clear the conversation
- `/model [name]` - Show or switch LLM model
- `/config` - Show current configuration
- `/log` - Show session log path
- `/help` - Show this help message
- `/quit` - Exit SandCrew

Anything else is sent to the coding agent.

**Examples:**

```
/connect octocat/hello-world
Add a dark mode toggle to the header
/branch feature/dark-mode
/commit
/pr Add dark mode
```
        """
        console.print(Markdown(help_text))


@app.command()
def main(
    path: Optional[str] = typer.Argument(
        None,
        help="Project path (default: current directory)"
    ),
    model: Optional[str] = typer.Option(
        None,
        "--model", "-m",
        help="Model to use (e.g., anthropic:claude-sonnet-4-5)"
    ),
) -> None:
    """Start SandCrew interactive session."""
    # Determine project root
    project_root = Path(path).resolve() if path else Path.cwd()

    if not project_root.exists():
        console.print(f"[red]Error: Path does not exist: {project_root}[/red]")
        sys.exit(1)

    if not project_root.is_dir():
        console.print(f"[red]Error: Path is not a directory: {project_root}[/red]")
        sys.exit(1)

    # Load configuration
    try:
        config = Config.load(project_root)
    except (ValueError, json.JSONDecodeError) as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        sys.exit(1)

    # Override model if specified
    if model:
        config.default_model = model

    # Validate configuration
    errors = config.validate()
    if errors:
        console.print("[red]Configuration errors:[/red]")
        for error in errors:
            console.print(f"  - {error}")
        sys.exit(1)

    # Start REPL
    try:
        session = Session(project_root, config)
    except ValueError as e:
        console.print(f"[red]Fatal error: {e}[/red]")
        sys.exit(1)

    asyncio.run(REPL(session).start())


if __name__ == "__main__":
    app()

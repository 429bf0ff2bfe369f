import inquirer


def prompt_text(message: str, default: str | None = None) -> str | None:
    """
    Prompt user for a line of text.

    Returns:
        User input string, or None if cancelled
    """
    try:
        questions = [inquirer.Text("value", message=message, default=default)]
        answers = inquirer.prompt(questions)
        return answers["value"] if answers else None

    except KeyboardInterrupt:
        return None


def prompt_password(message: str) -> str | None:
    """Prompt user for a secret without echoing it."""
    try:
        questions = [inquirer.Password("value", message=message)]
        answers = inquirer.prompt(questions)
        return answers["value"] if answers else None

    except KeyboardInterrupt:
        return None


def prompt_confirm(message: str, default: bool = False) -> bool:
    """
    Ask a yes/no question.

    Returns:
        True only if the user explicitly confirmed
    """
    try:
        questions = [inquirer.Confirm("confirm", message=message, default=default)]
        answers = inquirer.prompt(questions)
        return bool(answers and answers["confirm"])

    except KeyboardInterrupt:
        return False


def prompt_admin_credentials(
    email: str | None, password: str | None
) -> tuple[str | None, str | None]:
    """
    Fill in missing administrator credentials interactively.

    Args:
        email: Known email, prompted for when empty
        password: Known password, prompted for when empty

    Returns:
        tuple: (email, password), either may be None if the user cancelled
    """
    if not email:
        email = prompt_text("Enter the PlaceOS administrator email")
    if email and not password:
        password = prompt_password("Enter the PlaceOS administrator password")
    return email, password

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

DEFAULT_TEMPLATE_DIR = str(Path(__file__).resolve().parents[2] / "templates")


class Renderer:
    _env: Environment | None = None

    @classmethod
    def initialize(cls, template_dir: str = DEFAULT_TEMPLATE_DIR) -> None:
        """
        Initializes the template environment for rendering templates.

        HTML templates are autoescaped, so codes, names and free-text booking
        fields can never inject markup into an email body. Plain-text templates
        are rendered verbatim.

        Args:
            template_dir (str): The directory containing the template files.
        """
        cls._env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(
                enabled_extensions=("html", "xml"), default_for_string=True
            ),
            enable_async=True,
        )

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._env is not None

    @classmethod
    async def render_template(cls, template_name: str, context: dict = {}) -> str:
        """
        Renders an asynchronous template with the given context.

        Args:
            template_name (str): The name of the template to be rendered.
            context (dict): A dictionary containing the context data to be passed to the template.

        Returns:
            str: The rendered template as a string.

        Raises:
            TemplateNotFound: If the specified template cannot be found.
            TemplateError: If an error occurs during template rendering.
            RuntimeError: If the renderer has not been initialized.
        """
        if cls._env is None:
            raise RuntimeError("Renderer not initialized. Call initialize() first.")
        template = cls._env.get_template(template_name)
        return await template.render_async(**context)

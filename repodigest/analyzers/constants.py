"""Default rule tables used by the repodigest analyzers."""

from __future__ import annotations

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    # Build outputs
    "dist",
    "build",
    "out",
    ".next",
    ".nuxt",
    ".output",
    ".vercel",
    ".netlify",
    # Dependencies
    "node_modules",
    "vendor",
    "bower_components",
    ".pnp",
    ".venv",
    "__pycache__",
    # Package managers
    ".yarn/cache",
    ".yarn/install-state.gz",
    # Version control
    ".git",
    ".svn",
    ".hg",
    # IDEs
    ".vscode",
    ".idea",
    ".DS_Store",
    # Temporary files
    "*.log",
    "*.tmp",
    ".cache",
    ".temp",
    ".pytest_cache",
    ".mypy_cache",
    # Test coverage
    "coverage",
    ".nyc_output",
    # Misc
    ".env.local",
    ".env.*.local",
    "*.min.js",
    "*.bundle.js",
)

THEME_KEEP_PATTERNS: tuple[str, ...] = (
    "style.css",
    "functions.php",
    "index.php",
    "header.php",
    "footer.php",
    "sidebar.php",
    "single.php",
    "page.php",
    "archive.php",
    "template-*.php",
    "inc/**/*.php",
    "templates/**/*.php",
)

THEME_IGNORE_DIRS: tuple[str, ...] = (
    "node_modules",
    ".git",
    "dist",
    "build",
    ".cache",
    "vendor",
)

THEME_STACK_NAMES = frozenset({"WordPress", "WordPress Theme"})

SOURCE_EXTENSIONS = frozenset(
    {
        ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
        ".py", ".go", ".rs", ".java", ".kt", ".swift",
        ".rb", ".php", ".vue", ".svelte", ".astro",
    }
)

DOCUMENTATION_EXTENSIONS = frozenset({".md", ".mdx", ".txt", ".rst"})

CONFIG_MARKERS: tuple[str, ...] = (
    "package.json",
    "tsconfig.json",
    "tsup.config",
    "vite.config",
    "next.config",
    "webpack.config",
    "rollup.config",
    ".env",
    "docker-compose.yml",
    "dockerfile",
    "makefile",
    ".gitignore",
    ".prettierrc",
    ".eslintrc",
    "pyproject.toml",
    "setup.cfg",
    "tox.ini",
    "requirements.txt",
)

TEST_MARKERS: tuple[str, ...] = (
    ".test.",
    ".spec.",
    "__tests__",
    "__test__",
    "/tests/",
    "/test/",
)

ENTRY_FILENAMES = frozenset(
    {
        "index.ts",
        "index.js",
        "main.ts",
        "app.ts",
        "package.json",
        "tsconfig.json",
        "main.py",
        "app.py",
        "__main__.py",
        "pyproject.toml",
    }
)

README_FILENAMES = frozenset({"readme.md", "claude.md"})

THEME_BONUS_FILENAMES = frozenset({"functions.php", "style.css"})

DIRECTORY_PURPOSES: dict[str, str] = {
    "src": "Source code",
    "lib": "Library code",
    "components": "UI components",
    "pages": "Page components",
    "routes": "Routing logic",
    "api": "API endpoints",
    "services": "Business logic services",
    "utils": "Utility functions",
    "helpers": "Helper functions",
    "hooks": "React hooks",
    "stores": "State management",
    "models": "Data models",
    "schemas": "Data schemas",
    "types": "Type definitions",
    "config": "Configuration",
    "commands": "CLI commands",
    "controllers": "Request controllers",
    "middleware": "Middleware functions",
    "tests": "Test files",
    "docs": "Documentation",
}

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
        "been", "have", "has", "had", "do", "does", "did", "will", "would",
        "should", "could", "may", "might", "must", "can", "this", "that",
        "these", "those", "get", "set", "new", "return", "if", "else", "var",
        "let", "const", "function", "class", "import", "export", "default",
    }
)


__all__ = [
    "CONFIG_MARKERS",
    "DEFAULT_IGNORE_PATTERNS",
    "DIRECTORY_PURPOSES",
    "DOCUMENTATION_EXTENSIONS",
    "ENTRY_FILENAMES",
    "README_FILENAMES",
    "SOURCE_EXTENSIONS",
    "STOP_WORDS",
    "TEST_MARKERS",
    "THEME_BONUS_FILENAMES",
    "THEME_IGNORE_DIRS",
    "THEME_KEEP_PATTERNS",
    "THEME_STACK_NAMES",
]

"""
Static resource catalog — every tool, symlink, plugin dir and font that
``dotkit install`` materializes and ``dotkit verify`` audits.

Pure data, no logic. Both commands read from here so the naming
conventions they share are defined exactly once.

Recipe layout (``TOOL_RECIPES``)::

    "<tool id>": {
        "label": "Human name",
        "cli": "binary looked up on the tool path",
        "install": {<family or "_linux" or "_any">: [step, ...]},
        "fallback": {...same shape, run if the tool is still missing...},
        "requires": {"label": ..., "cli": [...], "install": {...}},
        "bin_dir_probe": {"command": [...], "suffix": "bin"},
        "pin_version": True,          # checked against Settings.neovim_version
        "manual_url": "https://...",
    }

Install keys are looked up as: exact family, then ``_linux`` for the
three known Linux families, then ``_any`` for every known family. The
``unknown`` family never matches a key.

Step types (see ``dotkit.core.services.steps``)::

    {"packages": [...], "cask": False}
    {"command": [...], "cwd": "...", "needs_sudo": False, "timeout": 600}
    {"write_file": "path", "content": "..."}
    {"link": "path", "source": "path"}

Any step may carry ``"when": "has_cli:X" | "missing_cli:X" |
"file_exists:P" | "missing_file:P"``. Strings may use the placeholders
``{home}``, ``{tmp}`` and ``{requires}``.
"""

from __future__ import annotations

from dotkit.core.models.resource import ManagedResource, ResourceKind

# ── Tool recipes ────────────────────────────────────────────────

_ZOXIDE_DIRECT = (
    "set -e; "
    "v=$(curl -s https://api.github.com/repos/ajeetdsouza/zoxide/releases/latest"
    " | grep -Po '\"tag_name\": \"v\\K[^\"]*'); "
    "mkdir -p \"{home}/.local/bin\"; "
    "curl -sL \"https://github.com/ajeetdsouza/zoxide/releases/download/v${v}/"
    "zoxide-${v}-x86_64-unknown-linux-musl.tar.gz\" | tar xz -C \"{tmp}\" zoxide; "
    "mv \"{tmp}/zoxide\" \"{home}/.local/bin/\"; "
    "chmod +x \"{home}/.local/bin/zoxide\""
)

TOOL_RECIPES: dict[str, dict] = {
    "nvim": {
        "label": "Neovim",
        "cli": "nvim",
        "pin_version": True,
        "install": {
            "macos": [{"packages": ["neovim"]}],
            "debian": [
                {"packages": [
                    "ninja-build", "gettext", "cmake", "unzip", "curl", "build-essential",
                ]},
                {"command": ["rm", "-rf", "{tmp}/neovim"]},
                {"command": [
                    "git", "clone", "https://github.com/neovim/neovim",
                    "--depth=1", "--branch=stable", "{tmp}/neovim",
                ]},
                {"command": ["make", "CMAKE_BUILD_TYPE=Release"],
                 "cwd": "{tmp}/neovim", "timeout": 3600},
                {"command": ["make", "install"], "cwd": "{tmp}/neovim", "needs_sudo": True},
                {"command": ["rm", "-rf", "{tmp}/neovim"]},
            ],
            "fedora": [{"packages": ["neovim"]}],
            "arch": [{"packages": ["neovim"]}],
        },
        "manual_url": "https://github.com/neovim/neovim/wiki/Installing-Neovim",
    },
    "tmux": {
        "label": "Tmux",
        "cli": "tmux",
        "install": {"_any": [{"packages": ["tmux"]}]},
        "manual_url": "https://github.com/tmux/tmux/wiki/Installing",
    },
    "kitty": {
        "label": "Kitty Terminal",
        "cli": "kitty",
        "install": {
            "macos": [{"packages": ["kitty"], "cask": True}],
            "_linux": [
                {"command": [
                    "bash", "-c",
                    "curl -L https://sw.kovidgoyal.net/kitty/installer.sh | sh /dev/stdin launch=n",
                ]},
                {"link": "{home}/.local/bin/kitty",
                 "source": "{home}/.local/kitty.app/bin/kitty"},
            ],
        },
        "manual_url": "https://sw.kovidgoyal.net/kitty/binary/",
    },
    "ruby": {
        "label": "Ruby",
        "cli": "ruby",
        "install": {
            "macos": [{"packages": ["ruby"]}],
            "debian": [{"packages": ["ruby-full", "ruby-dev", "build-essential"]}],
            "fedora": [{"packages": ["ruby", "ruby-devel"]}],
            "arch": [{"packages": ["ruby"]}],
        },
        "manual_url": "https://www.ruby-lang.org/en/documentation/installation/",
    },
    "colorls": {
        "label": "Colorls",
        "cli": "colorls",
        "requires": {"label": "Ruby", "cli": ["gem"]},
        "bin_dir_probe": {"command": ["ruby", "-e", "puts Gem.user_dir"], "suffix": "bin"},
        "install": {
            "_any": [
                {"write_file": "{home}/.gemrc", "content": "gem: --user-install\n"},
                {"command": ["{requires}", "install", "colorls"], "timeout": 600},
            ],
        },
        "fallback": {
            "_any": [
                {"command": ["{requires}", "install", "colorls"],
                 "needs_sudo": True, "timeout": 600},
            ],
        },
        "manual_url": "https://github.com/athityakumar/colorls#installation",
    },
    "zoxide": {
        "label": "Zoxide",
        "cli": "zoxide",
        "install": {
            "macos": [{"packages": ["zoxide"]}],
            "debian": [
                {"packages": ["curl"]},
                {"command": [
                    "bash", "-c",
                    "curl -sSfL https://raw.githubusercontent.com/ajeetdsouza/zoxide/main/install.sh | bash",
                ]},
            ],
            "fedora": [{"packages": ["zoxide"]}],
            "arch": [{"packages": ["zoxide"]}],
        },
        "fallback": {
            "debian": [
                {"command": ["cargo", "install", "zoxide", "--locked"],
                 "when": "has_cli:cargo", "timeout": 1800},
                {"command": ["bash", "-c", _ZOXIDE_DIRECT], "when": "missing_cli:cargo"},
            ],
        },
        "manual_url": "https://github.com/ajeetdsouza/zoxide#installation",
    },
    "fzf": {
        "label": "fzf",
        "cli": "fzf",
        "install": {
            "macos": [
                {"packages": ["fzf"]},
                {"command": [
                    "bash", "-c",
                    '"$(brew --prefix)/opt/fzf/install" '
                    "--key-bindings --completion --no-update-rc",
                ]},
            ],
            "_linux": [{"packages": ["fzf"]}],
        },
        "manual_url": "https://github.com/junegunn/fzf#installation",
    },
    "thefuck": {
        "label": "TheFuck",
        "cli": "thefuck",
        "requires": {
            "label": "pip",
            "cli": ["pip3", "pip"],
            "install": {
                "macos": [{"packages": ["python3"]}],
                "debian": [{"packages": ["python3-pip"]}],
                "fedora": [{"packages": ["python3-pip"]}],
                "arch": [{"packages": ["python-pip"]}],
            },
        },
        "install": {"_any": [{"command": ["{requires}", "install", "thefuck", "--user"]}]},
        "fallback": {
            "_any": [{"command": ["{requires}", "install", "thefuck"], "needs_sudo": True}],
        },
        "manual_url": "https://github.com/nvbn/thefuck#installation",
    },
}

# Installation sequence: editor, multiplexer, terminal, language runtime
# + package, directory jumper, fuzzy finder, correction tool.
INSTALL_ORDER: list[str] = [
    "nvim", "tmux", "kitty", "ruby", "colorls", "zoxide", "fzf", "thefuck",
]

# ── Verification: tools, smoke tests, search locations ─────────

VERIFY_TOOLS: list[ManagedResource] = [
    ManagedResource(id="nvim", name="Neovim", kind=ResourceKind.BINARY, command="nvim"),
    ManagedResource(id="kitty", name="Kitty", kind=ResourceKind.BINARY, command="kitty"),
    ManagedResource(id="ruby", name="Ruby", kind=ResourceKind.BINARY, command="ruby"),
    ManagedResource(id="colorls", name="Colorls", kind=ResourceKind.BINARY, command="colorls"),
    ManagedResource(id="zoxide", name="Zoxide", kind=ResourceKind.BINARY, command="zoxide"),
    ManagedResource(id="thefuck", name="TheFuck", kind=ResourceKind.BINARY, command="thefuck"),
    ManagedResource(id="fzf", name="Fuzzy Finder", kind=ResourceKind.BINARY, command="fzf"),
    ManagedResource(id="tmux", name="Tmux", kind=ResourceKind.BINARY, command="tmux"),
]

# Tool-specific functionality checks, run only when the tool was found.
SMOKE_TESTS: dict[str, dict] = {
    "zoxide": {"command": ["zoxide", "--help"]},
    "thefuck": {"command": ["thefuck", "--alias"]},
    "colorls": {"command": ["colorls", "--help"]},
    "fzf": {"command": ["fzf", "--filter=test"], "input": "test\n"},
    "nvim": {"command": ["nvim", "--version"]},
    "kitty": {"file": ".config/kitty/kitty.conf"},
}

# Where to look for a tool that is not on the tool path (relative to
# home unless absolute). The Ruby gem user bin is added at runtime.
COMMON_LOCATIONS: list[str] = [
    ".local/bin",
    "bin",
    "/usr/local/bin",
    "/usr/bin",
    "/bin",
    ".fzf/bin",
]

# Directories that should be on PATH for user-level tool installs.
PATH_DIRS: list[str] = [".local/bin", "bin"]

# Hint printed for tools that usually need a shell restart.
RESTART_HINT_TOOLS = frozenset({"zoxide", "thefuck", "fzf"})

# ── Configuration symlinks (source under dotfiles dir → target under home) ──

SYMLINKS: list[ManagedResource] = [
    ManagedResource(id="zshrc", name=".zshrc", kind=ResourceKind.CONFIG_FILE, group="zsh",
                    source="zsh/.zshrc", target=".zshrc"),
    ManagedResource(id="zprofile", name=".zprofile", kind=ResourceKind.CONFIG_FILE,
                    group="zsh", source="zsh/.zprofile", target=".zprofile"),
    ManagedResource(id="nvim-init", name="init.lua", kind=ResourceKind.CONFIG_FILE,
                    group="nvim", source="nvim/init.lua", target=".config/nvim/init.lua"),
    ManagedResource(id="nvim-lua", name="lua/", kind=ResourceKind.CONFIG_DIR,
                    group="nvim", source="nvim/lua", target=".config/nvim/lua"),
    ManagedResource(id="nvim-after", name="after/", kind=ResourceKind.CONFIG_DIR,
                    group="nvim", source="nvim/after", target=".config/nvim/after"),
    ManagedResource(id="kitty-conf", name="kitty.conf", kind=ResourceKind.CONFIG_FILE,
                    group="kitty", source="kitty/kitty.conf",
                    target=".config/kitty/kitty.conf"),
    ManagedResource(id="kitty-theme", name="current-theme.conf",
                    kind=ResourceKind.CONFIG_FILE, group="kitty",
                    source="kitty/current-theme.conf",
                    target=".config/kitty/current-theme.conf"),
    ManagedResource(id="tmux-conf", name=".tmux.conf", kind=ResourceKind.CONFIG_FILE,
                    group="tmux", source="tmux/.tmux.conf", target=".tmux.conf"),
    ManagedResource(id="colorls-colors", name="dark_colors.yaml",
                    kind=ResourceKind.CONFIG_FILE, group="colorls",
                    source="colorls/dark_colors.yaml",
                    target=".config/colorls/dark_colors.yaml"),
]

SYMLINK_GROUP_LABELS: dict[str, str] = {
    "zsh": "ZSH",
    "nvim": "Neovim",
    "kitty": "Kitty",
    "tmux": "Tmux",
    "colorls": "Colorls",
}


def symlinks_for(group: str) -> list[ManagedResource]:
    """Symlink resources belonging to one configuration group."""
    return [r for r in SYMLINKS if r.group == group]


# ── Plugin directories ─────────────────────────────────────────

OH_MY_ZSH = ManagedResource(
    id="oh-my-zsh", name="Oh My Zsh", kind=ResourceKind.PLUGIN_DIR, group="zsh",
    path=".oh-my-zsh",
    manual_url="https://ohmyz.sh/#install",
)
OH_MY_ZSH_INSTALLER = (
    "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"
)

ZSH_PLUGINS: list[ManagedResource] = [
    ManagedResource(
        id="zsh-autosuggestions", name="zsh-autosuggestions",
        kind=ResourceKind.PLUGIN_DIR, group="zsh",
        path="{zsh_custom}/plugins/zsh-autosuggestions",
        repo="https://github.com/zsh-users/zsh-autosuggestions",
    ),
    ManagedResource(
        id="zsh-syntax-highlighting", name="zsh-syntax-highlighting",
        kind=ResourceKind.PLUGIN_DIR, group="zsh",
        path="{zsh_custom}/plugins/zsh-syntax-highlighting",
        repo="https://github.com/zsh-users/zsh-syntax-highlighting.git",
    ),
]

PACKER = ManagedResource(
    id="packer", name="Packer.nvim", kind=ResourceKind.PLUGIN_DIR, group="nvim",
    path=".local/share/nvim/site/pack/packer/start/packer.nvim",
    repo="https://github.com/wbthomason/packer.nvim",
)
PACKER_SYNC_COMMAND: list[str] = [
    "nvim", "--headless",
    "-c", "autocmd User PackerComplete quitall",
    "-c", "PackerSync",
]

TPM = ManagedResource(
    id="tpm", name="Tmux Plugin Manager", kind=ResourceKind.PLUGIN_DIR, group="tmux",
    path=".tmux/plugins/tpm",
    repo="https://github.com/tmux-plugins/tpm",
)
TMUX_PLUGIN_MARKERS: list[str] = ["README.md", ".git", "plugin.tmux"]

# ── Font ────────────────────────────────────────────────────────

HACK_FONT = ManagedResource(
    id="hack-font", name="Hack Nerd Font", kind=ResourceKind.FONT,
    pattern="*Hack*",
    manual_url="https://www.nerdfonts.com/font-downloads",
)
HACK_FONT_CASK = "font-hack-nerd-font"
HACK_FONT_TAP = "homebrew/cask-fonts"

_NERD_FONTS_RAW = "https://github.com/ryanoasis/nerd-fonts/raw/master/patched-fonts/Hack"

# (destination filename, url, required)
HACK_FONT_FILES: list[tuple[str, str, bool]] = [
    ("Hack Regular Nerd Font Complete.ttf",
     f"{_NERD_FONTS_RAW}/Regular/HackNerdFont-Regular.ttf", True),
    ("Hack Bold Nerd Font Complete.ttf",
     f"{_NERD_FONTS_RAW}/Bold/HackNerdFont-Bold.ttf", False),
    ("Hack Italic Nerd Font Complete.ttf",
     f"{_NERD_FONTS_RAW}/Italic/HackNerdFont-Italic.ttf", False),
    ("Hack BoldItalic Nerd Font Complete.ttf",
     f"{_NERD_FONTS_RAW}/BoldItalic/HackNerdFont-BoldItalic.ttf", False),
]

NERD_FONTS_VERSION = "v3.1.1"
HACK_FONT_ZIP_URL = (
    f"https://github.com/ryanoasis/nerd-fonts/releases/download/{NERD_FONTS_VERSION}/Hack.zip"
)
NERD_FONTS_REPO = "https://github.com/ryanoasis/nerd-fonts.git"
HACK_FONT_SUBDIRS: list[str] = ["Regular", "Bold", "Italic", "BoldItalic"]

# Font directories by OS convention (relative to home unless absolute).
FONT_DIRS: dict[str, list[str]] = {
    "Darwin": ["Library/Fonts", "/Library/Fonts"],
    "Linux": [".local/share/fonts"],
}

# ── Backups ─────────────────────────────────────────────────────

BACKUP_DIR_NAME = "dotfiles_backup"
INSTALL_LOG_NAME = "install.log"
BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

# Presence of this helper in the dotfiles dir marks a container setup
# whose PATH may lack the user bin dirs.
PATH_FIX_HELPER = "docker_path_fix.sh"

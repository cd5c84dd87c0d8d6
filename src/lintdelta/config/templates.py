"""Templates for generated lintdelta configuration files."""

DEFAULT_CONFIG = """# lintdelta configuration (repo-relative paths)
default_branch: "master"
remote: "origin"
remote_refs_prefix: "refs/remotes/"

# Previous scan to compare against (JSON written by `lintdelta baseline`)
baseline_path: "out/lintdelta.baseline.json"

# git subprocess timeout in seconds (null to disable)
git_timeout_seconds: 30
detect_renames: false

# Exit with code 2 instead of falling back to a full report when git fails
strict: false

# Gating (null/empty to disable)
fail_on_new: false
max_new_violations:
fail_on_severity:

report_include: []
report_exclude:
  - "build/**"
  - "dist/**"
"""

CI_CONFIG = """# lintdelta configuration for CI pipelines
default_branch: "main"
remote: "origin"
baseline_path: "out/lintdelta.baseline.json"
strict: true
fail_on_new: true
fail_on_severity: "high"
"""

MINIMAL_CONFIG = """# lintdelta minimal configuration
default_branch: "master"
baseline_path: "out/lintdelta.baseline.json"
"""

CONFIG_PRESETS = {
    "full": DEFAULT_CONFIG,
    "ci": CI_CONFIG,
    "minimal": MINIMAL_CONFIG,
}

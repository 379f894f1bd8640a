"""Pytest fixtures for lintcheck tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from lintcheck.config import LintConfig
from lintcheck.engine import RuleEngine

SAMPLE_SPEC = """\
describe User do
  let(:user) { build(:user) }

  describe '.authenticate' do
    context 'when valid' do
      it 'returns the user' do
        expect(User.authenticate(user.email)).to eq user
      end
    end
  end

  describe '#admin?' do
    it { is_expected.not_to be_admin }
  end
end
"""


@pytest.fixture
def config() -> LintConfig:
    """Return the default configuration."""
    return LintConfig()


@pytest.fixture
def engine(config: LintConfig) -> RuleEngine:
    """Return an engine with the default rule set."""
    return RuleEngine(config)


@pytest.fixture
def spec_root(tmp_path: Path) -> Path:
    """Create an empty spec directory."""
    root = tmp_path / "spec"
    root.mkdir()
    return root


@pytest.fixture
def sample_spec() -> str:
    """Return a well-formed spec file with no violations."""
    return SAMPLE_SPEC

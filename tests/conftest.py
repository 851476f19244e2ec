"""Pytest configuration and fixtures for feature discovery tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest

from feature_discovery.config import ToolConfig

FIXED_TIMESTAMP = "2024-01-01T00:00:00.000Z"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to the sample React project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def fixed_timestamp() -> str:
    """Pinned generated-at value so catalogs from separate runs compare equal."""
    return FIXED_TIMESTAMP


@pytest.fixture
def sample_config(sample_project_path: Path) -> ToolConfig:
    return ToolConfig(root_dir=sample_project_path)


@pytest.fixture
def write_project(temp_dir: Path) -> Callable[..., Path]:
    """Materialize ``{relative_path: content}`` under a fresh project root."""

    def _write(files: Dict[str, str], name: str = "project") -> Path:
        root = temp_dir / name
        for relative, content in files.items():
            target = root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        root.mkdir(parents=True, exist_ok=True)
        return root

    return _write


@pytest.fixture
def sample_component_code() -> str:
    """Sample TSX component for detector and extractor tests."""
    return '''/**
 * Profile card with avatar and follow button
 */
import React, { useState, useEffect } from 'react';
import { useAuth } from '../hooks/useAuth';
import Avatar from './Avatar';

interface ProfileCardProps {
  userId: string;
  compact?: boolean;
}

export default function ProfileCard({ userId, compact }: ProfileCardProps) {
  const [following, setFollowing] = useState(false);
  const { user } = useAuth();

  useEffect(() => {
    setFollowing(false);
  }, [userId]);

  return (
    <div className="profile-card">
      <Avatar id={userId} small={compact} />
      <button onClick={() => setFollowing(!following)}>{user?.name}</button>
    </div>
  );
}
'''

"""File operation utilities for safe path components and directory handling."""

from __future__ import annotations

from pathlib import Path


def safe_filename(name: str, default: str = 'file') -> str:
    """Create a safe path component from a user or budget identifier.
    
    Preserves alphanumeric characters, underscores and hyphens; spaces become
    underscores and everything else is dropped.
    
    Args:
        name: The identifier to sanitize
        default: Name to use if sanitization results in an empty string
        
    Returns:
        Sanitized name safe for use as a file or directory name
        
    Example:
        >>> safe_filename("Household Budget 2024!")
        'Household_Budget_2024'
        >>> safe_filename("../../etc", default="budget")
        'etc'
    """
    if not name:
        return default
    
    cleaned = ''.join(c for c in str(name) if c.isalnum() or c in {' ', '_', '-'})
    cleaned = cleaned.strip().replace(' ', '_')
    
    while '__' in cleaned:
        cleaned = cleaned.replace('__', '_')
    
    cleaned = cleaned.rstrip('_')
    
    return cleaned if cleaned else default


def ensure_directory(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary.
    
    Raises:
        OSError: If the directory cannot be created
    """
    path.mkdir(parents=True, exist_ok=True)
    return path

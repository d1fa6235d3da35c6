"""
Configuration management for screenfuse.
"""
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Library settings with environment variable support (SCREENFUSE_ prefix)."""
    
    log_level: str = "INFO"
    
    # Score cache
    cache_ttl_seconds: float = 24 * 60 * 60
    cache_capacity: int = 1000
    
    # Fusion
    fusion_top_k: int = 3
    fallback_label: str = "uncategorized"
    placeholder_confidence: float = 0.1
    
    # Signal collection
    signal_timeout_seconds: float = 5.0
    
    # Adaptive learning
    learning_rate: float = 0.1
    weight_min: float = 0.1
    weight_max: float = 3.0
    history_cap: int = 100
    convergence_window: int = 10
    
    # Ranking
    max_results_to_rank: int = 100
    diversity_weight: float = 0.2
    diversity_app_cap: int = 3
    diversity_content_type_cap: int = 2
    contextual_boost_factor: float = 1.5
    contextual_boost_max: float = 0.3
    personalization_bound: float = 0.5
    
    # Similarity
    similarity_threshold: float = 0.7
    
    # Persisted weight state (None disables persistence)
    weight_state_path: Optional[str] = None
    
    class Config:
        env_prefix = "SCREENFUSE_"
        env_file = ".env"
        case_sensitive = False


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings loaded from the environment (cached)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset cached settings (for testing)."""
    global _settings
    _settings = None

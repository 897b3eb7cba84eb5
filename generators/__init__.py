from .curriculum_factory import CurriculumFactory, JsonCurriculumSource, NVC_L2_REQUIRED_CREDITS

__all__ = ["CurriculumFactory", "JsonCurriculumSource", "NVC_L2_REQUIRED_CREDITS"]

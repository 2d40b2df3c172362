from typing import Any, Dict, List, Optional, Type, Union, get_args, get_origin

from pydantic import BaseModel, Field, create_model


def _as_optional(annotation):
    if get_origin(annotation) is Union and type(None) in get_args(annotation):
        return annotation
    return Optional[annotation]


def create_subset_model(
    model_class: Type[BaseModel],
    field_names: List[str],
    model_name: Optional[str] = None,
    make_optional: Optional[List[str]] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
    extra_fields: Optional[Dict[str, Any]] = None
) -> Type[BaseModel]:
    """
    Create a parameter model that reuses fields of an existing model.

    Args:
        model_class: The source Pydantic model class
        field_names: Fields to copy, in order
        model_name: Optional name for the new model (defaults to f"{model_class.__name__}Subset")
        make_optional: Fields that become Optional; those without a default get None
        overrides: Field name to Field() keyword overrides, e.g. {"description": {"default": None}}
        extra_fields: Additional (annotation, Field(...)) definitions placed before the copied fields

    Returns:
        A new Pydantic model class
    """
    make_optional = make_optional or []
    overrides = overrides or {}

    fields: Dict[str, Any] = dict(extra_fields or {})

    for field_name in field_names:
        original_field = model_class.model_fields.get(field_name)
        if original_field is None:
            raise ValueError(f"Field '{field_name}' not found in {model_class.__name__}")

        field_type = original_field.annotation
        field_params: Dict[str, Any] = {"description": original_field.description}

        if field_name in make_optional:
            field_type = _as_optional(field_type)

        # default_factory fields (ids, timestamps, lists) are copied as plain
        # defaults so the parameter model never invents values
        if not original_field.is_required() and original_field.default_factory is None:
            field_params["default"] = original_field.default
        elif field_name in make_optional or original_field.default_factory is not None:
            field_params["default"] = None
            field_type = _as_optional(field_type)

        field_params.update(overrides.get(field_name, {}))
        fields[field_name] = (field_type, Field(**field_params))

    new_model_name = model_name or f"{model_class.__name__}Subset"
    return create_model(new_model_name, **fields)

"""
JSON schema for the cumulus configuration file.
"""

credentials = {
    "type": "object",
    "description": (
        "Exactly one way of proving identity to the Keystone endpoint."),
    "oneOf": [
        {
            "properties": {
                "username": {"type": "string", "minLength": 1},
                "password": {"type": "string", "minLength": 1}
            },
            "required": ["username", "password"],
            "additionalProperties": False
        },
        {
            "properties": {
                "access_key": {"type": "string", "minLength": 1},
                "secret_key": {"type": "string", "minLength": 1}
            },
            "required": ["access_key", "secret_key"],
            "additionalProperties": False
        },
        {
            "properties": {
                "username": {"type": "string", "minLength": 1},
                "api_key": {"type": "string", "minLength": 1}
            },
            "required": ["username", "api_key"],
            "additionalProperties": False
        }
    ]
}


identity = {
    "type": "object",
    "properties": {
        "url": {"type": "string", "format": "uri", "minLength": 1},
        "credentials": credentials,
        "tenant": {"type": "string"},
        "cache_ttl": {"type": "integer", "minimum": 0}
    },
    "required": ["url", "credentials"],
    "additionalProperties": False
}


service = {
    "type": "object",
    "description": "Either a service catalog name or a fixed URL.",
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "region": {"type": "string"},
        "url": {"type": "string", "minLength": 1}
    },
    "anyOf": [{"required": ["name"]}, {"required": ["url"]}],
    "additionalProperties": False
}


cloudstack = {
    "type": "object",
    "properties": {
        "endpoint": {"type": "string", "minLength": 1},
        "api_key": {"type": "string", "minLength": 1},
        "secret_key": {"type": "string", "minLength": 1}
    },
    "required": ["endpoint", "api_key", "secret_key"],
    "additionalProperties": False
}


config_schema = {
    "type": "object",
    "properties": {
        "identity": identity,
        "region": {"type": "string"},
        "services": {
            "type": "object",
            "properties": {
                "nova": service,
                "cloudServers": service
            },
            "additionalProperties": False
        },
        "cloudstack": cloudstack,
        "http": {
            "type": "object",
            "properties": {
                "timeout": {"type": "number", "exclusiveMinimum": 0}
            },
            "additionalProperties": False
        }
    },
    "additionalProperties": False
}

"""
ROS parameter handling shared by the executive nodes
"""

from rclpy.node import Node

from ..config import ExecutiveConfig, config_from_parameters, config_to_parameters, load_config


def declare_executive_config(node: Node) -> ExecutiveConfig:
    """Declare executive parameters and build the node's configuration.

    The optional config_file parameter is loaded first; its values become the
    defaults of the individual parameters, which launch files may override.
    """
    node.declare_parameter('config_file', '')
    config_file = node.get_parameter('config_file').value

    base = ExecutiveConfig()
    if config_file:
        base = load_config(config_file)
        node.get_logger().info(f"Loaded executive config from {config_file}")

    defaults = config_to_parameters(base)
    node.declare_parameters(namespace='', parameters=defaults)
    values = {name: node.get_parameter(name).value for name, _ in defaults}
    return config_from_parameters(values)

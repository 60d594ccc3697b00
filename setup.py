"""
setup.py - Python Package Configuration for the Excavation Executive
Excavation Robot - Task Executive Module

This setup.py configures the excavation_executive ROS2 Python package for:
- Teleoperation command dispatch (drive, dig, dump)
- Marker-based bin localization
- Navigation goal synthesis
- Simulated actuator hardware cycle

Usage:
    colcon build --packages-select excavation_executive
"""

from setuptools import setup, find_packages
import os
from glob import glob

package_name = 'excavation_executive'

setup(
    name=package_name,
    version='1.0.0',
    packages=find_packages(exclude=['test']),
    data_files=[
        # Install package marker
        ('share/ament_index/resource_index/packages',
            ['resource/' + package_name]),
        
        # Install package.xml
        ('share/' + package_name, ['package.xml']),
        
        # Install launch files
        (os.path.join('share', package_name, 'launch'),
            glob('launch/*.py')),
        
        # Install configuration files
        (os.path.join('share', package_name, 'config'),
            glob('config/*.yaml')),
    ],
    # rclpy, tf2_ros and the message packages come from the ROS distribution (see package.xml)
    install_requires=[
        'setuptools',
        'numpy>=1.20.0',
        'scipy>=1.7.0',
        'pyyaml>=5.4.0',
    ],
    extras_require={
        'test': ['pytest'],
    },
    zip_safe=True,
    
    # Metadata
    author='Excavation Robotics Team',
    author_email='robotics@excavation-team.org',
    maintainer='Excavation Robotics Team',
    maintainer_email='robotics@excavation-team.org',
    description='Task executive for the excavation robot: teleop, localization and navigation goals',
    license='MIT',
    
    # Testing
    tests_require=['pytest'],
    
    # Entry points - ROS2 node executables
    entry_points={
        'console_scripts': [
            # Teleop command dispatcher
            'teleop_action_server = excavation_executive.nodes.teleop_action_server:main',
            
            # Bin localization
            'localization_action_server = excavation_executive.nodes.localization_action_server:main',
            
            # Simulated hardware cycle
            'controller_launcher = excavation_executive.nodes.hardware_cycle_node:main',
        ],
    },
    
    # Package classifiers
    classifiers=[
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.12',
        'Topic :: Scientific/Engineering :: Robotics',
        'Framework :: Robot Operating System 2',
    ],
    
    # Python version requirement
    python_requires='>=3.8',
    
    # Additional keywords for searchability
    keywords=[
        'ros2',
        'robotics',
        'excavation',
        'teleoperation',
        'localization',
        'action-server',
    ],
)

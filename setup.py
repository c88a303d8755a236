#!/usr/bin/python
from setuptools import setup, find_namespace_packages

setup(
      name='sshfan',
      version='0.3.0',
      description='Run shell commands on many hosts through the ssh client',
      author='sshfan developers',
      license='MIT',
      packages=find_namespace_packages(include=["sshfan", "sshfan.*"]),
      include_package_data=True,
      zip_safe=False,
      # 安装依赖的其他包
      install_requires = [
        "click>=8.2",
        "rich",
        "PyYAML",
        "Jinja2",
        "marshmallow",
        "marshmallow-dataclass",
      ],
      extras_require={
        "test": ["pytest"],
      },
    # 安装后，命令行执行 `sshfan` 相当于调用 sshfan.__main__:main
    entry_points={
        'console_scripts':[
            'sshfan = sshfan.__main__:main'
        ]
    },
    python_requires='>=3.11'
)

"""
通知テンプレート関連モジュール。

- schemas: Template / TemplateCondition / Destination / NotionCredential
- conditions: 条件 1 件の評価
- matcher: ページに一致するテンプレートの絞り込み
- formatter: 本文プレースホルダの置換
- repository: ストアのインターフェースとインメモリ実装
- state: 共有インメモリストア
"""

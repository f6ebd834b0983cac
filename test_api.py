"""
API evaluation script

Usage:
    python test_api.py --endpoint http://localhost:8000 --images test_images/ --mode intelligent

Description:
    - Sends every image in the directory to /api/restyle once per style
    - Measures processing time, success rate and which provider answered
    - Writes the results to evaluation_report.md
"""

import requests
import os
import time
import argparse
from collections import Counter
from typing import List, Dict, Any
import statistics


class APITester:
    def __init__(self, endpoint: str, mode: str = "direct", num_outputs: int = 2, intensity: float = 0.6):
        self.endpoint = endpoint.rstrip('/')
        self.api_url = f"{self.endpoint}/api/restyle"
        self.mode = mode
        self.num_outputs = num_outputs
        self.intensity = intensity

    def fetch_styles(self) -> List[str]:
        response = requests.get(f"{self.endpoint}/api/styles", timeout=10)
        response.raise_for_status()
        return [style['id'] for style in response.json()]

    def restyle_image(self, image_path: str, style_key: str) -> Dict[str, Any]:
        """Single restyle request"""
        print(f"  {style_key}...", end=" ", flush=True)

        with open(image_path, 'rb') as f:
            files = {'image': (os.path.basename(image_path), f, 'image/jpeg')}
            data = {
                'styleKey': style_key,
                'intensity': str(self.intensity),
                'numOutputs': str(self.num_outputs),
                'mode': self.mode,
            }

            start_time = time.time()
            try:
                # Two providers with two candidates each can take several minutes
                response = requests.post(self.api_url, files=files, data=data, timeout=600)
                elapsed_time = time.time() - start_time

                if response.status_code == 200:
                    body = response.json()
                    metadata = body.get('metadata', {})
                    print(f"ok ({elapsed_time:.1f}s, {metadata.get('provider')})")
                    return {
                        'style': style_key,
                        'success': True,
                        'processing_time': elapsed_time,
                        'api_processing_time': metadata.get('processingTime', 0) / 1000,
                        'provider': metadata.get('provider', ''),
                        'mode_used': metadata.get('mode', ''),
                        'image_count': len(body.get('images', [])),
                        'error': None
                    }

                print(f"HTTP {response.status_code}")
                return {
                    'style': style_key,
                    'success': False,
                    'processing_time': elapsed_time,
                    'error': f"HTTP {response.status_code}: {response.text}"
                }
            except requests.RequestException as e:
                elapsed_time = time.time() - start_time
                print("error")
                return {
                    'style': style_key,
                    'success': False,
                    'processing_time': elapsed_time,
                    'error': str(e)
                }

    def test_directory(self, images_dir: str) -> List[Dict[str, Any]]:
        """Restyle every image in the directory with every style"""
        image_extensions = {'.jpg', '.jpeg', '.png', '.webp'}
        image_files = sorted(
            os.path.join(images_dir, f)
            for f in os.listdir(images_dir)
            if os.path.splitext(f)[1].lower() in image_extensions
        )
        styles = self.fetch_styles()

        print(f"Found {len(image_files)} images in {images_dir}, {len(styles)} styles, mode={self.mode}")

        results = []
        for image_path in image_files:
            print(f"\nTesting: {image_path}")
            for style_key in styles:
                result = self.restyle_image(image_path, style_key)
                result['image'] = os.path.basename(image_path)
                results.append(result)
                time.sleep(1)  # stay under upstream rate limits

        return results

    def generate_report(self, results: List[Dict[str, Any]], output_file: str = "evaluation_report.md"):
        """Write the evaluation report"""
        total = len(results)
        successes = [r for r in results if r['success']]
        failed = total - len(successes)

        api_times = [r['api_processing_time'] for r in successes]
        providers = Counter(r['provider'] for r in successes)
        modes = Counter(r['mode_used'] for r in successes)

        style_stats: Dict[str, Dict[str, int]] = {}
        for result in results:
            stats = style_stats.setdefault(result['style'], {'success': 0, 'total': 0})
            stats['total'] += 1
            if result['success']:
                stats['success'] += 1

        with open(output_file, 'w', encoding='utf-8') as f:
            f.write("# Room Restyle API Evaluation Report\n\n")

            f.write("## 1. Summary\n\n")
            f.write(f"- Date: {time.strftime('%Y-%m-%d %H:%M:%S')}\n")
            f.write(f"- Endpoint: {self.api_url}\n")
            f.write(f"- Requested mode: {self.mode}\n")
            f.write(f"- Requests: {total}\n")
            if total:
                f.write(f"- Succeeded: {len(successes)} ({len(successes)/total*100:.1f}%)\n")
                f.write(f"- Failed: {failed} ({failed/total*100:.1f}%)\n\n")

            f.write("## 2. Timing\n\n")
            if api_times:
                f.write(f"- Mean: {statistics.mean(api_times):.2f}s\n")
                f.write(f"- Min: {min(api_times):.2f}s\n")
                f.write(f"- Max: {max(api_times):.2f}s\n")
                f.write(f"- Median: {statistics.median(api_times):.2f}s\n\n")
            else:
                f.write("No successful requests.\n\n")

            f.write("## 3. Providers and modes\n\n")
            for provider, count in providers.most_common():
                f.write(f"- {provider}: {count}\n")
            for mode, count in modes.most_common():
                f.write(f"- mode {mode}: {count}\n")
            f.write("\n")

            f.write("## 4. Success rate by style\n\n")
            f.write("| Style | Success | Failed | Rate |\n")
            f.write("|-------|---------|--------|------|\n")
            for style, stats in sorted(style_stats.items()):
                rate = stats['success'] / stats['total'] * 100 if stats['total'] else 0
                f.write(f"| {style} | {stats['success']} | {stats['total'] - stats['success']} | {rate:.1f}% |\n")
            f.write("\n")

            f.write("## 5. Failures\n\n")
            for result in results:
                if not result['success']:
                    f.write(f"- {result['image']} / {result['style']}: {result['error']}\n")

        print(f"\nReport written to {output_file}")


def main():
    parser = argparse.ArgumentParser(description='Room restyle API evaluation')
    parser.add_argument('--endpoint', default='http://localhost:8000', help='API base URL')
    parser.add_argument('--images', default='test_images', help='Directory of room photos')
    parser.add_argument('--mode', default='direct', choices=['direct', 'intelligent'], help='Generation mode')
    parser.add_argument('--outputs', type=int, default=2, help='Images requested per call (1-5)')
    parser.add_argument('--intensity', type=float, default=0.6, help='Style intensity (0-1)')
    parser.add_argument('--output', default='evaluation_report.md', help='Report file')

    args = parser.parse_args()

    if not os.path.exists(args.images):
        print(f"Error: image directory '{args.images}' not found.")
        print(f"Put test photos in {args.images}.")
        return

    tester = APITester(args.endpoint, args.mode, args.outputs, args.intensity)
    results = tester.test_directory(args.images)
    tester.generate_report(results, args.output)

    successful = sum(1 for r in results if r['success'])
    print(f"\n{len(results)} requests, {successful} succeeded, {len(results) - successful} failed")


if __name__ == "__main__":
    main()
